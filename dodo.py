# -*- coding: utf-8 -*-
# pydoit task file
# see https://pydoit.org/
# run from this dir with `doit`, or `doit list`, `doit help` etc. (pip install doit 1st)

from doit.action import CmdAction

_SPEEDS = {"slow": ["-m", "slow"], "not slow": ["-m", '"not slow"'], "all": []}
_SPEEDS["fast"] = _SPEEDS["not slow"]


def _build_pytest_command(
    test_dir,
    keyword="",
    speed="",
    retry=False,
    print_logs=False,
    full_trace=False,
    show_time=False,
):
    """Assemble the pytest command line for a test task."""
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
        if speed not in _SPEEDS:
            raise ValueError(
                f"Invalid speed filter: {speed}. Use 'slow', 'not slow', 'fast', or 'all'"
            )
        cmd.extend(_SPEEDS[speed])
    cmd.append(test_dir)
    return " ".join(cmd)


def _flag(name, short):
    return {"name": name, "short": short, "default": False, "type": bool}


_TEST_PARAMS = [
    {"name": "help", "long": "help", "default": False, "type": bool},
    {"name": "keyword", "short": "k", "default": ""},
    {"name": "speed", "short": "s", "default": ""},
    _flag("retry", "r"),
    _flag("print_logs", "p"),
    _flag("full_trace", "f"),
    _flag("show_time", "t"),
]

_TEST_HELP = """echo '
{title}
{underline}

Filter Options:
  -k, --keyword TEXT    Only run test matching the keyword expression
                        Example: -k "router and not close"
  -s, --speed TEXT      Filter test by speed:
                        - "slow": Run only slow test
                        - "not slow" or "fast": Skip slow test
                        - "all": Run all test regardless of speed
  -r, --retry           Only run previously failed test

Output Options:
  -p, --print-logs      Print test logs to console instead of capturing
  -f, --full-trace      Show full traceback on errors
  -t, --show-time       Display duration of all test

Examples:
  doit {task}                     # Run all test
  doit {task} -k channel          # Run test containing "channel"
  doit {task} -s fast -p          # Run fast test with logs
  doit {task} --retry --show-time # Rerun failed test with timing
{extra}'"""


def _test_task(test_dir, task, title, extra=""):
    def router(keyword, speed, retry, print_logs, full_trace, show_time, help=False):
        if help:
            return _TEST_HELP.format(
                title=title, underline="=" * len(title), task=task, extra=extra
            )
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
        "actions": [CmdAction(router)],
        "params": _TEST_PARAMS,
        "verbosity": 2,
    }


def task_install():
    """Install pitaya in editable mode, with test dependencies"""
    return {
        "actions": ["pip install -e .[test]"],
        "verbosity": 2,
    }


def task_test_logic():
    """Run the logic test suite (test in test/logic/), no instrument needed."""
    return _test_task("test/logic/", "test_logic", "Test Logic Runner Help")


def task_test_hardware():
    """Run the hardware test suite (test in test/hardware/)."""
    return _test_task(
        "test/hardware/",
        "test_hardware",
        "Test Hardware Runner Help",
        extra="\nSet PITAYA_HOST (and PITAYA_APP to start an application) first.\n",
    )


def task_format():
    """Format code using ruff."""
    return {
        "actions": [
            "ruff check --select I --fix src/pitaya test/ dodo.py",
            "ruff format src/pitaya test/ dodo.py",
        ],
        "verbosity": 2,
    }


def task_docs():
    """Generate documentation using pdoc3."""
    return {
        "actions": [
            "pdoc3 --output-dir docs/ --html --force --skip-errors ./src/pitaya/"
        ],
        "verbosity": 2,
    }
