"""仿真时钟"""
from dataclasses import dataclass

@dataclass
class SchedulerClock:
    """调度器时钟"""
    virtual_time: float = 0.0   # 系统虚拟时间（只在发送后推进到该包的完成时间）
    physical_time: int = 0      # 物理时间（输出时打印）

    def advance_virtual(self, finish_tag: float):
        """推进虚拟时间，保持单调不减"""
        if finish_tag > self.virtual_time:
            self.virtual_time = finish_tag

    def advance_physical(self, length: int):
        self.physical_time += length

    def sync_physical(self, arrival_time: int):
        """空闲后把物理时间同步到新到达包的时间"""
        self.physical_time = arrival_time
