"""prelaunch 命令行入口"""

from .runtime import get_sequencer


def main():
    """入口函数

    执行 prelaunch，成功退出码 0，失败退出码 1。
    进程退出时运行已注册的终止回调（删除 PID 文件）。
    """
    sequencer = get_sequencer()
    sequencer.runtime.bind_process_exit()
    result = sequencer.run()
    if result.ok:
        print(f"prelaunch completed on {sequencer.runtime.node_name}")
    raise SystemExit(result.exit_code)


if __name__ == "__main__":
    main()
