import os
import stat

from microbench.proc_latency import do_fork, do_forkexec, do_procedure, do_shell


def _script(tmp_path, code):
    path = tmp_path / "prog"
    path.write_text(f"#!/bin/sh\nexit {code}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


def test_procedure_counts_calls():
    assert do_procedure(100, 5) == 100
    assert do_procedure(0) == 0


def test_fork_children_exit_with_one():
    assert do_fork(3) == [1, 1, 1]


def test_forkexec_reports_program_status(tmp_path):
    program = _script(tmp_path, 4)
    assert do_forkexec(2, program) == [4, 4]


def test_forkexec_missing_program_exits_one(tmp_path):
    missing = str(tmp_path / "absent")
    assert not os.path.exists(missing)
    assert do_forkexec(1, missing) == [1]


def test_shell_runs_command():
    assert do_shell(2, "exit 3") == [3, 3]


def test_shell_runs_script(tmp_path):
    program = _script(tmp_path, 0)
    assert do_shell(1, program) == [0]