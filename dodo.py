# -*- coding: utf-8 -*-
# pydoit task file
# see https://pydoit.org/
# run from this dir with `doit`, or `doit list`, `doit help` etc. (pip install doit 1st)

from doit.action import CmdAction


def _build_pytest_command(
    test_dir,
    keyword="",
    speed="",
    retry=False,
    print_logs=False,
    full_trace=False,
    show_time=False,
):
    """Helper function to build pytest commands for test tasks."""
    cmd = ["pytest"]

    if print_logs:
        cmd.append("--capture=no")
    if full_trace:
        cmd.append("--full-trace")
    if show_time:
        cmd.append("--durations=0")

    cmd.extend(["--color=yes", "-vv", "-x"])

    if retry:
        cmd.append("--lf")
    if keyword:
        cmd.extend(["-k", keyword])
    if speed:
        if speed == "slow":
            cmd.extend(["-m", "slow"])
        elif speed in ["not slow", "fast"]:
            cmd.extend(["-m", '"not slow"'])
        elif speed != "all":
            raise ValueError(
                f"Invalid speed filter: {speed}. Use 'slow', 'not slow', 'fast', or 'all'"
            )

    cmd.append(test_dir)
    return " ".join(cmd)


def _help_param():
    return {"name": "help", "long": "help", "default": False, "type": bool}


def _test_params():
    return [
        _help_param(),
        {"name": "keyword", "short": "k", "default": ""},
        {"name": "speed", "short": "s", "default": ""},
        {"name": "retry", "short": "r", "default": False, "type": bool},
        {"name": "print_logs", "short": "p", "default": False, "type": bool},
        {"name": "full_trace", "short": "f", "default": False, "type": bool},
        {"name": "show_time", "short": "t", "default": False, "type": bool},
    ]


def _test_help(task, suite):
    return f"""echo '
{suite} Test Runner Help
======================

Filter Options:
  -k, --keyword TEXT    Only run tests matching the keyword expression
                        Example: -k "codec and not slow"
  -s, --speed TEXT      Filter tests by speed:
                        - "slow": Run only slow tests
                        - "not slow" or "fast": Skip slow tests
                        - "all": Run all tests regardless of speed
  -r, --retry           Only run previously failed tests

Output Options:
  -p, --print-logs      Print test logs to console instead of capturing
  -f, --full-trace      Show full traceback on errors
  -t, --show-time       Display duration of all tests

Examples:
  doit {task}                     # Run all tests
  doit {task} -k session          # Run tests containing "session"
  doit {task} -s fast -p          # Run fast tests with logs
  doit {task} --retry --show-time # Rerun failed tests with timing
  '"""


def _test_task(task, suite, test_dir, doc):
    def router(keyword, speed, retry, print_logs, full_trace, show_time, help=False):
        if help:
            return _test_help(task, suite)
        try:
            return _build_pytest_command(
                test_dir,
                keyword=keyword,
                speed=speed,
                retry=retry,
                print_logs=print_logs,
                full_trace=full_trace,
                show_time=show_time,
            )
        except ValueError as e:
            return f"echo 'Error: {str(e)}' && exit 1"

    return {
        "doc": doc,
        "actions": [CmdAction(router)],
        "params": _test_params(),
        "verbosity": 2,
    }


def task_make_env():
    """Create a conda environment"""
    return {
        "actions": ["conda create --prefix ./conda_env python=3.11"],
        "targets": ["./conda_env"],
        "uptodate": [True],  # Only run if target doesn't exist
        "verbosity": 2,
    }


def task_install():
    """Install lmscope in editable mode, with test extras"""
    return {
        "actions": ["pip install -e .[test]"],
        "task_dep": ["make_env"],
        "verbosity": 2,
    }


def task_test_logic():
    """Run the logic test suite (tests in test/logic/)."""
    return _test_task(
        "test_logic", "Logic", "test/logic/", "Run the logic test suite"
    )


def task_test_hardware():
    """Run the hardware test suite (tests in test/hardware/, needs LMSCOPE_HOST)."""
    return _test_task(
        "test_hardware", "Hardware", "test/hardware/", "Run the hardware test suite"
    )


def task_format():
    """Format code using ruff."""

    def router(help=False):
        if help:
            return """echo '
Code Formatter Help
=================

Runs ruff to sort imports and format src/lmscope/, test/ and dodo.py.

No options required - simply run:
  doit format
  '"""
        return [
            "ruff check --select I --fix src/lmscope",
            "ruff format src/lmscope",
            "ruff check --select I --fix test/",
            "ruff format test/",
            "ruff check --select I --fix dodo.py",
            "ruff format dodo.py",
        ]

    return {
        "actions": [CmdAction(router)],
        "params": [_help_param()],
        "verbosity": 2,
    }


def task_docs():
    """Generate documentation using pdoc3."""

    def router(help=False):
        if help:
            return """echo '
Documentation Generator Help
==========================

Runs pdoc3 over src/lmscope/ and writes HTML into docs/.

No options required - simply run:
  doit docs
  '"""
        return "pdoc3 --output-dir docs/ --html --force --skip-errors ./src/lmscope/"

    return {
        "actions": [CmdAction(router)],
        "params": [_help_param()],
        "verbosity": 2,
    }
