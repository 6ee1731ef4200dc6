from ..core.models import LaunchTarget, Operation
from .context import PipelineContext


def test_blocked_by_active_operation():
    context = PipelineContext()
    assert context.blocked_by(Operation.CONFIGURE) is None

    with context.running(Operation.BUILD):
        assert context.blocked_by(Operation.CONFIGURE) is Operation.BUILD

    assert context.blocked_by(Operation.CONFIGURE) is None


def test_running_configure_resets_background_flag():
    context = PipelineContext()
    with context.running(Operation.CONFIGURE):
        context.configure_in_background = True
    assert not context.configure_in_background
    assert not context.active


def test_set_target_marks_dirty():
    context = PipelineContext(configure_dirty=False)
    context.set_target("all")
    assert context.current_target == "all"
    assert context.configure_dirty


def test_select_launch_target():
    context = PipelineContext()

    target = context.select_launch_target("/work>bin/app(-v)")

    assert target == LaunchTarget("/work/bin/app", "/work", ["-v"])
    assert context.current_launch() == target
    assert context.select_launch_target("") is None
    assert context.current_launch() is None


def test_select_malformed_launch_target_keeps_selection():
    context = PipelineContext(current_launch_target="/work>app()")
    assert context.select_launch_target("garbage") is None
    assert context.current_launch_target == "/work>app()"


def test_readers_wait_for_configure_until_cache_is_loaded():
    context = PipelineContext()
    with context.running(Operation.CONFIGURE):
        assert context.blocked_for_reading() is Operation.CONFIGURE
        context.configure_in_background = True
        assert context.blocked_for_reading() is None
        assert context.blocked_by(Operation.CONFIGURE) is Operation.CONFIGURE


def test_builds_do_not_block_readers():
    context = PipelineContext()
    with context.running(Operation.BUILD):
        assert context.blocked_for_reading() is None
    with context.running(Operation.PRE_CONFIGURE):
        assert context.blocked_for_reading() is Operation.PRE_CONFIGURE
