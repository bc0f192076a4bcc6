"""Shared test fixtures: sample diffs, manifests, temp git repos."""

from __future__ import annotations

import json
import subprocess
import textwrap
from pathlib import Path

import pytest


@pytest.fixture
def sample_diff_app() -> str:
    """A diff touching application code only."""
    return textwrap.dedent("""\
        diff --git a/src/index.ts b/src/index.ts
        index 1234567..abcdef0 100644
        --- a/src/index.ts
        +++ b/src/index.ts
        @@ -1,3 +1,4 @@
         import { serve } from "./server";
        +import { health } from "./health";

         serve(8080);
    """)


@pytest.fixture
def sample_diff_helm() -> str:
    """A diff touching the chart manifest and an infra script."""
    return textwrap.dedent("""\
        diff --git a/helm/Chart.yaml b/helm/Chart.yaml
        index 1234567..abcdef0 100644
        --- a/helm/Chart.yaml
        +++ b/helm/Chart.yaml
        @@ -1,4 +1,4 @@
         apiVersion: v2
         name: web
        -description: Web app
        +description: Web application
         version: 1.0.0
        diff --git a/helm/scripts/deploy.sh b/helm/scripts/deploy.sh
        index 1111111..2222222 100755
        --- a/helm/scripts/deploy.sh
        +++ b/helm/scripts/deploy.sh
        @@ -1,2 +1,3 @@
         #!/bin/sh
        +set -e
         helm upgrade --install web ./helm
    """)


@pytest.fixture
def sample_diff_version_noise() -> str:
    """A diff whose only content change in package.json is the version field."""
    return textwrap.dedent("""\
        diff --git a/package.json b/package.json
        index 1234567..abcdef0 100644
        --- a/package.json
        +++ b/package.json
        @@ -1,5 +1,5 @@
         {
           "name": "web",
        -  "version": "1.2.3",
        +  "version": "1.2.4",
           "private": true
         }
    """)


@pytest.fixture
def sample_diff_new_file() -> str:
    """A diff adding a new file."""
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    """A diff deleting a file."""
    return textwrap.dedent("""\
        diff --git a/legacy.js b/legacy.js
        deleted file mode 100644
        index abc1234..0000000
        --- a/legacy.js
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -module.exports = {};
        -// legacy
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    """A diff with a binary file."""
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    """A diff with a renamed file."""
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    """A diff with only file mode change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    """A diff with 'No newline at end of file' marker."""
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        new file mode 100644
        index 0000000..abc1234
        --- /dev/null
        +++ b/data.txt
        @@ -0,0 +1 @@
        +final line without newline
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_diff_plain() -> str:
    """A plain unified diff without git headers."""
    return textwrap.dedent("""\
        --- a/lib/util.js
        +++ b/lib/util.js
        @@ -1,2 +1,2 @@
        -const x = 1;
        +const x = 2;
         module.exports = x;
    """)


@pytest.fixture
def sample_diff_malformed() -> str:
    """A diff with a broken header between two good files."""
    return textwrap.dedent("""\
        diff --git a/one.txt b/one.txt
        index 1111111..2222222 100644
        --- a/one.txt
        +++ b/one.txt
        @@ -1 +1 @@
        -a
        +b
        diff --git garbage
        @@ -1 +1 @@
        -ignored
        +ignored too
        diff --git a/two.txt b/two.txt
        index 3333333..4444444 100644
        --- a/two.txt
        +++ b/two.txt
        @@ -1 +1 @@
        -c
        +d
    """)


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=cwd, capture_output=True, check=True)


def write_package_json(root: Path, version: str = "2.3.1", **extra) -> Path:
    path = root / "package.json"
    path.write_text(json.dumps({"name": "web", "version": version, **extra}, indent=2) + "\n")
    return path


def write_chart(root: Path, version: str = "1.0.0", app_version: str = "2.3.1") -> Path:
    path = root / "helm" / "Chart.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "apiVersion: v2\n"
        "name: web\n"
        "description: Web application\n"
        f"version: {version}\n"
        f"appVersion: {app_version}\n"
    )
    return path


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    _git(tmp_path, "config", "user.email", "test@test.com")
    _git(tmp_path, "config", "user.name", "Test")
    _git(tmp_path, "config", "commit.gpgsign", "false")
    # Initial commit
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-m", "init")
    return tmp_path


@pytest.fixture
def project_repo(tmp_git_repo: Path) -> Path:
    """A committed repo with package.json, helm/Chart.yaml and app code."""
    write_package_json(tmp_git_repo)
    write_chart(tmp_git_repo)
    (tmp_git_repo / "src").mkdir()
    (tmp_git_repo / "src" / "index.ts").write_text('import { serve } from "./server";\n\nserve(8080);\n')
    (tmp_git_repo / "helm" / "scripts").mkdir()
    (tmp_git_repo / "helm" / "scripts" / "deploy.sh").write_text("#!/bin/sh\nhelm upgrade --install web ./helm\n")
    _git(tmp_git_repo, "add", ".")
    _git(tmp_git_repo, "commit", "-m", "project")
    return tmp_git_repo
