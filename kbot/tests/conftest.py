import sys
from pathlib import Path

# Make `import kbot...` work no matter where pytest is started from.
tests_dir = Path(__file__).resolve().parent
repo_root = tests_dir.parent.parent
for p in (str(repo_root), str(tests_dir)):
    if p not in sys.path:
        sys.path.insert(0, p)
