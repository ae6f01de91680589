"""Pytest configuration and fixtures for diffreader tests."""
from __future__ import annotations

import logging
import os

import pytest

from diffreader.config import _get_config_cached
from diffreader.git.diff_parser import DiffParser


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch):
    """Keep DIFFREADER_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("DIFFREADER_"):
            monkeypatch.delenv(key, raising=False)
    _get_config_cached.cache_clear()
    yield
    _get_config_cached.cache_clear()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo CLI logging setup so caplog sees diffreader records."""
    yield
    package_logger = logging.getLogger("diffreader")
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def diff_parser() -> DiffParser:
    """Create a diff parser instance."""
    return DiffParser()


@pytest.fixture
def strict_parser() -> DiffParser:
    """Create a diff parser that raises on malformed input."""
    return DiffParser(strict=True)


@pytest.fixture
def simple_diff_output() -> str:
    """One modified file with a single hunk."""
    return """diff --git a/test.txt b/test.txt
index 1234567..abcdefg 100644
--- a/test.txt
+++ b/test.txt
@@ -1,3 +1,4 @@
 line 1
-line 2
+line 2 modified
+line 3 added
 line 4
"""


@pytest.fixture
def sample_diff_output() -> str:
    """Sample git diff output covering new, deleted, modified and binary files."""
    return """diff --git a/src/main.py b/src/main.py
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/src/main.py
@@ -0,0 +1,5 @@
+def hello():
+    print("Hello, world!")
+
+if __name__ == "__main__":
+    hello()
diff --git a/src/utils.py b/src/utils.py
deleted file mode 100755
index e69de29..0000000
--- a/src/utils.py
+++ /dev/null
@@ -1,3 +0,0 @@
-def old_func():
-    pass
-
diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,5 +1,6 @@ class App:
+import new_module
 def main():
-    old_call()
+    new_call()
     return True
@@ -20,3 +21,3 @@ def helper():
     x = 1
-    y = 2
+    y = 3
diff --git a/assets/logo.png b/assets/logo.png
index 3333333..4444444 100644
Binary files a/assets/logo.png and b/assets/logo.png differ
"""


@pytest.fixture
def renamed_diff_output() -> str:
    """A rename with a small content change."""
    return """diff --git a/oldname.py b/newname.py
similarity index 88%
rename from oldname.py
rename to newname.py
index 1234567..abcdefg 100644
--- a/oldname.py
+++ b/newname.py
@@ -1,3 +1,4 @@
 def example():
     value = True
+    new_value = False
     return value
"""
