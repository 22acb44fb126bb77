"""主程序入口"""
import sys
import os
import json
import argparse
from typing import Iterable, List, Dict, Any, Optional, TextIO

from .config import SimulationConfig
from .packet import DispatchRecord
from .reader import RecordReader, MalformedRecordError
from .scheduler import WFQScheduler
from .stats import StatisticsCollector
from .visualizer import WFQVisualizer

class WFQSimulator:
    """WFQ仿真器（主控制器）"""

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.stats_collector = StatisticsCollector()
        self.scheduler: Optional[WFQScheduler] = None
        self.dispatches: List[DispatchRecord] = []

    def run(self, lines: Iterable[str], output: TextIO = None):
        """
        运行仿真

        Args:
            lines: 输入行
            output: 调度结果输出流（默认stdout）
        """
        output = output or sys.stdout
        self.scheduler = WFQScheduler(
            RecordReader(lines),
            default_weight=self.config.default_weight,
            stats_collector=self.stats_collector
        )

        self.stats_collector.record_event(
            'INIT',
            f'仿真初始化完成 - 默认权重: {self.config.default_weight}',
            0
        )
        if self.config.verbose:
            self._log("开始WFQ调度仿真...")
            self._log("-" * 50)

        for dispatch in self.scheduler.run():
            self.dispatches.append(dispatch)
            print(dispatch.format_line(), file=output, flush=True)

            if self.config.verbose and len(self.dispatches) % self.config.log_interval == 0:
                self._print_progress()

        if self.config.verbose:
            self._log("\n仿真完成!")
            self._log("=" * 50)

    def _log(self, message: str):
        print(message, file=sys.stderr)

    def _print_progress(self):
        """打印仿真进度"""
        clock = self.scheduler.clock
        self._log(f"物理时间: {clock.physical_time} | "
                  f"虚拟时间: {clock.virtual_time:.2f} | "
                  f"已发送: {len(self.dispatches)} | "
                  f"积压: {self.scheduler.registry.backlog} | "
                  f"通道: {len(self.scheduler.registry)}")

    def get_results(self) -> Dict[str, Any]:
        """获取仿真结果"""
        return {
            'config': self.config.to_dict(),
            'summary_stats': self.stats_collector.get_summary_stats(),
            'channel_stats': self.stats_collector.get_channel_summary(),
            'dispatched': len(self.dispatches)
        }

    def export(self, save_dir: str):
        """导出数据"""
        if not os.path.exists(save_dir):
            os.makedirs(save_dir)

        self.stats_collector.export_dispatches(os.path.join(save_dir, 'schedule.csv'))
        self.stats_collector.export_channels(os.path.join(save_dir, 'channels.csv'))
        self.stats_collector.export_to_csv(os.path.join(save_dir, 'time_series.csv'))
        self.stats_collector.export_events(os.path.join(save_dir, 'events.csv'))

        # 保存配置
        with open(os.path.join(save_dir, 'config.json'), 'w', encoding='utf-8') as f:
            json.dump(self.config.to_dict(), f, indent=2)

        self._log(f"\n数据已导出到: {save_dir}")

    def visualize(self, save_dir: str = None, show: bool = True):
        """可视化结果"""
        if save_dir and not os.path.exists(save_dir):
            os.makedirs(save_dir)

        visualizer = WFQVisualizer(self.stats_collector)
        save_path = os.path.join(save_dir, 'wfq_schedule_summary.png') if save_dir else None
        return visualizer.plot_comprehensive(save_path, show=show)

def parse_arguments(argv: List[str] = None):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(description='WFQ加权公平队列调度仿真器')

    parser.add_argument('input', nargs='?', default=None,
                        help='输入文件（省略或"-"表示标准输入）')
    parser.add_argument('--default-weight', type=float, default=1.0,
                        help='未指定权重的流的默认权重')

    # 输出选项
    parser.add_argument('--verbose', action='store_true',
                        help='在stderr上输出进度')
    parser.add_argument('--log-interval', type=int, default=1000,
                        help='进度输出间隔（发送包数）')
    parser.add_argument('--stats', action='store_true',
                        help='结束后在stderr上打印统计摘要')
    parser.add_argument('--export', type=str, default=None,
                        help='导出数据目录')
    parser.add_argument('--visualize', action='store_true',
                        help='启用可视化')

    return parser.parse_args(argv)

def main(argv: List[str] = None) -> int:
    """主函数"""
    args = parse_arguments(argv)

    try:
        config = SimulationConfig(
            input_path=args.input,
            default_weight=args.default_weight,
            verbose=args.verbose,
            show_stats=args.stats,
            export_dir=args.export,
            visualize=args.visualize,
            log_interval=args.log_interval
        )
    except ValueError as e:
        print(f"配置错误: {e}", file=sys.stderr)
        return 2

    simulator = WFQSimulator(config)

    try:
        if config.input_path in (None, '-'):
            simulator.run(sys.stdin)
        else:
            with open(config.input_path, 'r', encoding='utf-8') as f:
                simulator.run(f)
    except MalformedRecordError as e:
        print(e, file=sys.stderr)
        return 1
    except OSError as e:
        print(f"无法读取输入: {e}", file=sys.stderr)
        return 2

    if config.show_stats:
        simulator.stats_collector.print_summary()

    if config.export_dir:
        simulator.export(config.export_dir)

    if config.visualize:
        simulator.visualize(config.export_dir or 'results')

    return 0

if __name__ == "__main__":
    sys.exit(main())
