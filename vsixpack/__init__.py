from .models import PackageOptions, PackageResult, PackagingError
from .packager import collect, list_files, ls, pack, package_command
from .version import __version__

__all__ = [
    "PackageOptions",
    "PackageResult",
    "PackagingError",
    "__version__",
    "collect",
    "list_files",
    "ls",
    "pack",
    "package_command",
]
