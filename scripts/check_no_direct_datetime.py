from __future__ import annotations

import re
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
APP_DIR = ROOT / "app"

# Calls only; bare references such as `default=datetime.utcnow` on a column are allowed.
FORBIDDEN_CALLS = [
    re.compile(r"\bdatetime\.(?:now|utcnow|today)\("),
    re.compile(r"\bdate\.today\("),
    re.compile(r"\btime\.time\("),
]
ALLOWED_FILES = {"app/core/time_provider.py"}


def find_violations(app_dir: Path = APP_DIR) -> list[tuple[str, int, str]]:
    root = app_dir.parent
    found: list[tuple[str, int, str]] = []
    for file_path in sorted(app_dir.rglob("*.py")):
        relative = file_path.relative_to(root).as_posix()
        if relative in ALLOWED_FILES:
            continue
        for line_no, line in enumerate(file_path.read_text(encoding="utf-8").splitlines(), start=1):
            if line.lstrip().startswith("#"):
                continue
            if any(regex.search(line) for regex in FORBIDDEN_CALLS):
                found.append((relative, line_no, line.strip()))
    return found


def main() -> int:
    violations = find_violations()
    if not violations:
        print("app/ reads the clock only through TimeProvider.")
        return 0
    print("Read the clock through app.core.time_provider instead of:")
    for path, line_no, line in violations:
        print(f"  {path}:{line_no}: {line}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
