"""
Inclusion rules shared by local and remote ingestion.

Everything here is a lookup table or a pure function so the thresholds can be
tuned and tested without touching the walker, the fetcher or the pipeline.
"""

import posixpath
import re
from typing import Optional

MAX_FILE_SIZE = 1024 * 1024  # 1 MiB, larger files are never read
MAX_CONTENT_CHARS = 50_000
TRUNCATION_MARKER = "\n... [truncated]"
MAX_DEPTH = 10

# Tunable: share of control characters above which text is treated as binary
BINARY_CONTROL_RATIO = 0.1
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0E-\x1F\x7F]")

SUPPORTED_EXTENSIONS = frozenset({
    ".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".cs", ".cpp", ".c", ".h",
    ".php", ".rb", ".go", ".rs", ".swift", ".kt", ".scala", ".clj", ".hs",
    ".md", ".txt", ".json", ".yml", ".yaml", ".xml", ".html", ".css", ".scss",
    ".sql", ".sh", ".bat", ".ps1", ".dockerfile", ".tf",
})

# Matched as substrings of the lowercased basename
IMPORTANT_FILENAMES = (
    "readme", "license", "changelog", "contributing", "dockerfile",
    "makefile", "rakefile", "gemfile", "package.json", "composer.json",
    "requirements.txt", "setup.py", "pom.xml", "build.gradle",
)

# Directory or file names whose whole subtree is ignored. Matched against
# whole path segments, not substrings, so "combine.py" or "node_modules_shim/"
# are kept.
SKIP_NAMES = frozenset({
    "node_modules", ".git", ".vscode", ".idea", "dist", "build", "target",
    "bin", "obj", "__pycache__", ".pytest_cache", "coverage", ".nyc_output",
    "logs", "tmp", "temp", ".DS_Store", "Thumbs.db",
})

LANGUAGE_MAP = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".clj": "clojure",
    ".hs": "haskell",
    ".md": "markdown",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".sql": "sql",
    ".json": "json",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".xml": "xml",
    ".sh": "shell",
    ".bat": "batch",
    ".ps1": "powershell",
}
UNKNOWN_LANGUAGE = "unknown"


def extension_of(path: str) -> str:
    """Lowercase extension of the basename, including the dot."""
    return posixpath.splitext(posixpath.basename(path))[1].lower()


def detect_language(path: str) -> str:
    """Detect language tag from file extension."""
    return LANGUAGE_MAP.get(extension_of(path), UNKNOWN_LANGUAGE)


def should_skip_path(relative_path: str) -> bool:
    """True if any segment is hidden or a known noise directory."""
    for part in relative_path.replace("\\", "/").split("/"):
        if not part or part == ".":
            continue
        if part.startswith(".") or part in SKIP_NAMES:
            return True
    return False


def is_included_name(filename: str) -> bool:
    """Allow-listed extension, or an important file such as README or Dockerfile."""
    if extension_of(filename) in SUPPORTED_EXTENSIONS:
        return True
    lowered = posixpath.basename(filename).lower()
    return any(important in lowered for important in IMPORTANT_FILENAMES)


def should_include_file(relative_path: str, size: int) -> bool:
    """
    Decide whether a file is worth reading.

    Args:
        relative_path: Slash-separated path relative to the repository root
        size: Size in bytes as reported by the source

    Returns:
        True if the file passes the size ceiling, the skip list and the
        name rules
    """
    if size > MAX_FILE_SIZE:
        return False
    if should_skip_path(relative_path):
        return False
    return is_included_name(relative_path)


def is_binary_content(content: str) -> bool:
    """Heuristic: too many control characters means binary."""
    if not content:
        return False
    control = len(_CONTROL_CHARS.findall(content))
    return control > len(content) * BINARY_CONTROL_RATIO


def truncate_content(content: str, limit: int = MAX_CONTENT_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def prepare_content(content: str) -> Optional[str]:
    """Drop binary text, truncate the rest. None means skip the file."""
    if is_binary_content(content):
        return None
    return truncate_content(content)
