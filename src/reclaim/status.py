"""Host and disk status."""

import logging
import os
import platform
import shutil
import socket
import subprocess
import time

import psutil

from reclaim.models import DiskUsage, format_size

log = logging.getLogger(__name__)


def _parse_diskutil_bytes(line: str) -> int | None:
    # "Container Total Space:     245.1 GB (245107195904 Bytes)"
    parts = line.split("(")
    if len(parts) < 2:
        return None
    try:
        return int(parts[1].split()[0])
    except (ValueError, IndexError):
        return None


def get_disk_usage(mount_point: str = "/") -> DiskUsage:
    """
    Get overall disk usage for a mount point.

    Uses the APFS container figures from diskutil when available, so the
    numbers match macOS System Settings; falls back to shutil.
    """
    try:
        result = subprocess.run(
            ["diskutil", "info", mount_point],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        log.debug("diskutil unavailable: %s", e)
        result = None

    if result is not None and result.returncode == 0:
        total_bytes = None
        free_bytes = None
        for line in result.stdout.splitlines():
            if "Container Total Space:" in line:
                total_bytes = _parse_diskutil_bytes(line)
            elif "Container Free Space:" in line:
                free_bytes = _parse_diskutil_bytes(line)

        if total_bytes and free_bytes:
            return DiskUsage(
                total_bytes=total_bytes,
                used_bytes=total_bytes - free_bytes,
                free_bytes=free_bytes,
                mount_point=mount_point,
            )

    usage = shutil.disk_usage(mount_point)
    return DiskUsage(
        total_bytes=usage.total,
        used_bytes=usage.used,
        free_bytes=usage.free,
        mount_point=mount_point,
    )


def format_uptime(seconds: float) -> str:
    """Format an uptime as '3d 4h 12m'."""
    minutes = int(seconds) // 60
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)
    return f"{days}d {hours}h {minutes}m"


def get_volume_usage() -> list[DiskUsage]:
    """Usage of every mounted physical volume; unreadable mounts are skipped."""
    volumes = []
    for part in psutil.disk_partitions(all=False):
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except OSError as e:
            log.debug("Cannot read usage of %s: %s", part.mountpoint, e)
            continue
        volumes.append(
            DiskUsage(
                total_bytes=usage.total,
                used_bytes=usage.used,
                free_bytes=usage.free,
                mount_point=part.mountpoint,
            )
        )
    return volumes


def get_system_info() -> list[tuple[str, str]]:
    """Host, uptime, CPU, memory and battery details as (key, value) pairs."""
    info = [
        ("Hostname", socket.gethostname()),
        ("Platform", f"{platform.system()} {platform.machine()}"),
        ("Release", platform.release()),
        ("CPU", platform.processor() or platform.machine()),
        ("Cores", str(os.cpu_count() or 0)),
        ("Uptime", format_uptime(time.time() - psutil.boot_time())),
        ("CPU Usage", f"{psutil.cpu_percent(interval=0.2):.0f}%"),
    ]

    mem = psutil.virtual_memory()
    info.append(
        ("Memory", f"{format_size(mem.used)} / {format_size(mem.total)} ({mem.percent:.0f}%)")
    )

    try:
        battery = psutil.sensors_battery()
    except (AttributeError, NotImplementedError, OSError) as e:
        log.debug("Battery status unavailable: %s", e)
        battery = None
    if battery is not None:
        charging = " (Charging)" if battery.power_plugged else ""
        info.append(("Battery", f"{battery.percent:.0f}%{charging}"))

    return info
