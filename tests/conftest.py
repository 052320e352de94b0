"""Shared fixtures: fake collector scripts"""

import pytest
import stat
import tempfile
from pathlib import Path


# Succeeds: writes the archive and records its arguments next to it
SUCCEED_SCRIPT = """#!/bin/sh
sleep {delay}
echo "$3" > "$1/$2.args"
printf 'PK' > "$1/$2.zip"
exit 0
"""

FAIL_SCRIPT = """#!/bin/sh
sleep {delay}
exit {code}
"""


@pytest.fixture
def temp_storage():
    """Create temporary storage directory for tests"""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage_path = Path(tmpdir)
        (storage_path / "logs").mkdir(parents=True, exist_ok=True)
        (storage_path / "bin").mkdir(parents=True, exist_ok=True)
        yield storage_path


@pytest.fixture
def make_collector(temp_storage):
    """Factory writing an executable fake collector script, returns its path"""

    def _make(delay: float = 0, exit_code: int = 0) -> Path:
        if exit_code == 0:
            body = SUCCEED_SCRIPT.format(delay=delay)
        else:
            body = FAIL_SCRIPT.format(delay=delay, code=exit_code)
        script = temp_storage / "bin" / f"collector-{delay}-{exit_code}.sh"
        script.write_text(body)
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make
