"""Static rule tables for reclaim."""

from reclaim.models import EcosystemRule

# =============================================================================
# Applications
# =============================================================================

APPLICATION_ROOTS: tuple[str, ...] = (
    "/Applications",
    "~/Applications",
    "/Library/Input Methods",
    "~/Library/Input Methods",
)

# Mounted volumes may carry their own Applications folder
VOLUME_APPLICATION_GLOB = "/Volumes/*/Applications"

# Bundles that must never be offered for removal
PROTECTED_BUNDLE_IDS = frozenset(
    {
        "com.apple.finder",
        "com.apple.Safari",
        "com.apple.systempreferences",
        "com.apple.Settings",
        "com.apple.AppStore",
        "com.apple.Terminal",
        "com.apple.ActivityMonitor",
        "com.apple.Console",
        "com.apple.DiskUtility",
        "com.apple.keychainaccess",
        "com.apple.Spotlight",
        "com.apple.dock",
        "com.apple.loginwindow",
        "com.apple.SystemUIServer",
        "com.apple.controlcenter",
        "com.apple.notificationcenterui",
        "com.apple.backup.launcher",
        "com.apple.MigrateAssistant",
        "com.apple.BootCampAssistant",
        "com.apple.installer",
        "com.apple.SoftwareUpdate",
        "com.apple.mail",
        "com.apple.iCal",
        "com.apple.AddressBook",
        "com.apple.MobileSMS",
        "com.apple.FaceTime",
        "com.apple.Photos",
        "com.apple.Music",
        "com.apple.TV",
        "com.apple.Preview",
        "com.apple.TextEdit",
        "com.apple.calculator",
        "com.apple.launchpad.launcher",
        "com.apple.inputmethod.Kotoeri",
        "com.apple.inputmethod.SCIM",
        "com.apple.inputmethod.TCIM",
        "com.raycast.macos",
    }
)

# Prefixes under which nothing is ever removed
PROTECTED_PATH_PREFIXES: tuple[str, ...] = (
    "/System",
    "/usr",
    "/bin",
    "/sbin",
    "/Library/Apple",
    "/Applications/Safari.app",
    "/Applications/Utilities",
)

# =============================================================================
# Installers
# =============================================================================

INSTALLER_EXTENSIONS = frozenset({".dmg", ".pkg", ".mpkg", ".iso", ".xip", ".zip"})
INSTALLER_SCAN_MAX_DEPTH = 8

# Only the first entries of a .zip are sampled for an installer payload
ZIP_SAMPLE_ENTRIES = 50
ZIP_PAYLOAD_PATTERN = r"\.(app|pkg|dmg|xip)(/|$)"

INSTALLER_ROOTS: tuple[str, ...] = (
    "~/Downloads",
    "~/Desktop",
    "~/Documents",
    "~/Public",
    "~/Library/Downloads",
    "/Users/Shared",
    "/Users/Shared/Downloads",
    "~/Library/Caches/Homebrew",
    "~/Library/Mobile Documents/com~apple~CloudDocs/Downloads",
    "~/Library/Containers/com.apple.mail/Data/Library/Mail Downloads",
    "~/Library/Application Support/Telegram Desktop",
    "~/Downloads/Telegram Desktop",
)

# (root prefix, label) pairs, checked in order against the parent directory
INSTALLER_SOURCE_LABELS: tuple[tuple[str, str], ...] = (
    ("~/Downloads", "Downloads"),
    ("~/Desktop", "Desktop"),
    ("~/Documents", "Documents"),
    ("~/Public", "Public"),
    ("~/Library/Downloads", "Library"),
    ("/Users/Shared", "Shared"),
    ("~/Library/Caches/Homebrew", "Homebrew"),
    ("~/Library/Mobile Documents/com~apple~CloudDocs/Downloads", "iCloud"),
    ("~/Library/Containers/com.apple.mail", "Mail"),
)

PACKAGE_CACHE_LABEL = "Homebrew"
PACKAGE_CACHE_HASH_PREFIX = r"^[0-9a-f]{64}--"

# =============================================================================
# Workspaces
# =============================================================================

WORKSPACE_ROOTS: tuple[str, ...] = (
    "~/Projects",
    "~/project",
    "~/workspace",
    "~/Desktop",
    "~/Documents",
)
WORKSPACE_SCAN_MAX_DEPTH = 8

ECOSYSTEMS: tuple[EcosystemRule, ...] = (
    EcosystemRule(
        id="node-js-ts",
        file_markers=(
            "package.json",
            "pnpm-lock.yaml",
            "yarn.lock",
            "package-lock.json",
            "tsconfig.json",
        ),
        clean_dir_names=("node_modules", ".next", "dist", "build", "out"),
    ),
    EcosystemRule(
        id="java-kotlin",
        file_markers=(
            "pom.xml",
            "build.gradle",
            "settings.gradle",
            "build.gradle.kts",
            "settings.gradle.kts",
            "gradle.properties",
        ),
        clean_dir_names=("target", "build", ".gradle"),
    ),
    EcosystemRule(
        id="python",
        file_markers=("requirements.txt", "pyproject.toml", "Pipfile"),
        clean_dir_names=(
            "venv",
            "env",
            "__pycache__",
            ".tox",
            ".mypy_cache",
            ".pytest_cache",
        ),
    ),
    EcosystemRule(
        id="go",
        file_markers=("go.mod",),
        clean_dir_names=("bin", "dist"),
    ),
    EcosystemRule(
        id="rust",
        file_markers=("Cargo.toml",),
        clean_dir_names=("target",),
    ),
    EcosystemRule(
        id="php",
        file_markers=("composer.json",),
        clean_dir_names=("vendor",),
    ),
    EcosystemRule(
        id="swift-objc",
        file_markers=("Package.swift",),
        dir_marker_suffixes=(".xcodeproj", ".xcworkspace"),
        clean_dir_names=("DerivedData", "build"),
    ),
    EcosystemRule(
        id="haskell",
        file_markers=("stack.yaml", "cabal.project"),
        file_suffixes=(".cabal",),
        clean_dir_names=("dist-newstyle", ".stack-work", "dist", "build"),
    ),
    EcosystemRule(
        id="generic",
        file_markers=("Makefile",),
        clean_dir_names=("build", "dist", "out"),
    ),
)


def get_ecosystem(ecosystem_id: str) -> EcosystemRule | None:
    """Get an ecosystem rule by id."""
    for rule in ECOSYSTEMS:
        if rule.id == ecosystem_id:
            return rule
    return None


def match_ecosystems(file_names: set[str], dir_names: set[str]) -> list[EcosystemRule]:
    """Rules matching a directory's immediate children, in catalog order."""
    return [rule for rule in ECOSYSTEMS if rule.matches(file_names, dir_names)]


def clean_dir_names_for(rules: list[EcosystemRule]) -> list[str]:
    """Union of cleanable directory names over rules, first occurrence first."""
    names: list[str] = []
    for rule in rules:
        for name in rule.clean_dir_names:
            if name not in names:
                names.append(name)
    return names


def is_protected_app(bundle_id: str, app_path: str) -> bool:
    """Whether an application is system-critical and must never be removed."""
    if bundle_id in PROTECTED_BUNDLE_IDS:
        return True
    for prefix in PROTECTED_PATH_PREFIXES:
        if app_path == prefix or app_path.startswith(prefix + "/"):
            return True
    return False
