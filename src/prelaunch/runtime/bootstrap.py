"""Bootstrap - prelaunch 启动编排

职责：
- 根据节点身份选择路径（首轮完整启动 / 再次进入时精简启动）
- 按固定顺序调用各 setup 步骤
- 管理 PID 文件和终止回调
- 失败时清理 PID 文件并上报，每个失败只上报一次

不负责：
- 各步骤的具体逻辑（由 steps/ 下的协作者实现）
- Context 字段的计算（由 EnvResolver 实现）
"""

from dataclasses import dataclass

from ..context import Context, ContextStore
from ..diagnostics import Diagnostics
from ..env import EnvResolver
from ..errors import BootFault, SetupFailure, StepContractError
from ..result import BootResult
from ..steps import (
    BytecodeSetup,
    ClusterSetup,
    ConfigSetup,
    DistributionSetup,
    FeatureFlagsSetup,
    SetupStep,
)
from ..telemetry import get_logger, metrics
from .host import HostRuntime, NodeIdentity
from .pidfile import PidFileManager
from .reporter import ExceptionReporter
from .shutdown import ShutdownHookRegistry

logger = get_logger(__name__)

# 进程级 sequencer，首次 run() 时创建
_current_sequencer: "BootSequencer | None" = None


@dataclass
class BootSteps:
    """prelaunch 调用的 setup 步骤"""

    feature_flags: SetupStep
    conf: SetupStep
    diagnostics: SetupStep
    bytecode: SetupStep
    dist: SetupStep
    cluster: SetupStep

    def initial_pass(self) -> list[SetupStep]:
        return [
            self.feature_flags,
            self.conf,
            self.diagnostics,
            self.bytecode,
            self.dist,
            self.cluster,
        ]

    def later_pass(self) -> list[SetupStep]:
        return [self.feature_flags, self.diagnostics, self.cluster]


class BootSequencer:
    """prelaunch 编排器

    run() 可以被调用多次：
    - 节点身份未确定（首轮）：完整启动，写 PID 文件，安装终止回调
    - 节点身份已确定（再次进入）：取回首轮保存的 Context，只执行 3 个步骤
    """

    def __init__(
        self,
        runtime: HostRuntime,
        env: EnvResolver,
        diagnostics: Diagnostics,
        steps: BootSteps,
        context_store: ContextStore | None = None,
        pid_files: PidFileManager | None = None,
        shutdown_hooks: ShutdownHookRegistry | None = None,
        reporter: ExceptionReporter | None = None,
    ):
        self.runtime = runtime
        self.env = env
        self.diagnostics = diagnostics
        self.steps = steps
        self.context_store = context_store or ContextStore()
        self.pid_files = pid_files or PidFileManager()
        self.shutdown_hooks = shutdown_hooks or ShutdownHookRegistry(runtime, self.pid_files)
        self.reporter = reporter or ExceptionReporter()

    def run(self) -> BootResult:
        identity = self.runtime.node_identity
        metrics.inc("prelaunch.run", {"path": identity.value})
        try:
            if identity is NodeIdentity.UNRESOLVED:
                return self._run_initial_pass()
            return self._run_later_pass()
        except SetupFailure as failure:
            self.reporter.report_failure(failure, diagnostics_available=False)
            return BootResult.failed(failure)
        except Exception as exc:
            self.reporter.report(exc, diagnostics_available=False)
            return BootResult.failed(BootFault.from_exception(exc))

    def _run_initial_pass(self) -> BootResult:
        self.diagnostics.enable_quick_trace(self.env.trace_config())

        # 日志初始化前只能拿到部分 Context
        context0 = self.env.context_before_logging_init()
        self.diagnostics.enable_prelaunch_logging(context0, early=True)
        self.env.log_process_env()

        # 读取 env 配置文件后重新配置日志
        context1 = self.env.context_after_logging_init(context0)
        self.diagnostics.enable_prelaunch_logging(context1, early=True)
        self.env.log_process_env()

        context = self.env.context_after_reloading_env(context1).with_pass(initial=True)
        self.context_store.set(context)
        self.env.log_context(context)

        self.env.context_to_code_path(context)
        self.env.context_to_app_env_vars(context)

        self.shutdown_hooks.install(context)

        try:
            # 写入失败已记录告警，不影响启动
            self.pid_files.write(context)
            return self._run_protected(context, self.steps.initial_pass(), owns_pid_file=True)
        except Exception:
            self.pid_files.remove(context)
            raise

    def _run_later_pass(self) -> BootResult:
        logger.info("[Prelaunch] Prelaunch executed again")
        context = self.context_store.get().with_pass(initial=False)
        self.env.log_context(context)
        return self._run_protected(context, self.steps.later_pass(), owns_pid_file=False)

    def _run_protected(
        self,
        context: Context,
        steps: list[SetupStep],
        owns_pid_file: bool,
    ) -> BootResult:
        try:
            self._stop_embedded_db()
            for step in steps:
                self._run_step(step, context)
        except SetupFailure as failure:
            # 日志未配置时上报直接写到标准错误
            self.reporter.report_failure(failure, diagnostics_available=self.diagnostics.available)
            if owns_pid_file:
                self.pid_files.remove(context)
            return BootResult.failed(failure)
        except Exception as exc:
            self.reporter.report(exc, diagnostics_available=self.diagnostics.available)
            if owns_pid_file:
                self.pid_files.remove(context)
            return BootResult.failed(BootFault.from_exception(exc))

        # 没有需要常驻监管的子进程
        return BootResult.no_child()

    def _stop_embedded_db(self) -> None:
        # 内嵌数据库随上游依赖启动，但分布式未配置时不可用，且会干扰集群一致性检查。
        # 先停掉，等分布式配置完成后由主程序重新启动。
        logger.debug("[Prelaunch] Ensuring embedded database is stopped")
        self.runtime.embedded_db.stop()

    def _run_step(self, step: SetupStep, context: Context) -> None:
        logger.debug(f"[Prelaunch] Running setup step: {step.name}")
        try:
            returned = step.setup(context)
            if returned is not None:
                raise StepContractError(step.name, returned)
        except Exception:
            metrics.inc("prelaunch.step.failed", {"step": step.name})
            raise
        metrics.inc("prelaunch.step.ok", {"step": step.name})


def build_sequencer(
    runtime: HostRuntime | None = None,
    env: EnvResolver | None = None,
    diagnostics: Diagnostics | None = None,
) -> BootSequencer:
    """用默认协作者构造 BootSequencer"""
    runtime = runtime or HostRuntime()
    diagnostics = diagnostics or Diagnostics()
    steps = BootSteps(
        feature_flags=FeatureFlagsSetup(runtime),
        conf=ConfigSetup(runtime),
        diagnostics=diagnostics,
        bytecode=BytecodeSetup(),
        dist=DistributionSetup(runtime),
        cluster=ClusterSetup(runtime),
    )
    return BootSequencer(
        runtime=runtime,
        env=env or EnvResolver(runtime),
        diagnostics=diagnostics,
        steps=steps,
    )


def get_sequencer() -> BootSequencer:
    """获取进程级 BootSequencer（不存在则创建）"""
    global _current_sequencer
    if _current_sequencer is None:
        _current_sequencer = build_sequencer()
    return _current_sequencer


def set_sequencer(sequencer: BootSequencer) -> None:
    """替换进程级 BootSequencer（必须在第一次 run() 之前调用）"""
    global _current_sequencer
    _current_sequencer = sequencer


def run() -> BootResult:
    """prelaunch 入口"""
    return get_sequencer().run()


def _reset_for_testing() -> None:
    """重置进程级状态（仅用于测试）"""
    global _current_sequencer
    _current_sequencer = None
