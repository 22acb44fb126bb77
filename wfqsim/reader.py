"""输入记录读取模块"""
import math
from typing import Iterable, Iterator, Optional

from .packet import PacketRecord

class MalformedRecordError(ValueError):
    """输入行格式错误（致命，不可恢复）"""

    def __init__(self, line_no: int, line: str, reason: str):
        self.line_no = line_no
        self.line = line
        self.reason = reason
        super().__init__(f"bad input line {line_no}: {reason}: {line!r}")

def _parse_uint(text: str, name: str, line_no: int, line: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise MalformedRecordError(line_no, line, f"{name} 不是整数: {text!r}") from None
    if value < 0:
        raise MalformedRecordError(line_no, line, f"{name} 不能为负数: {value}")
    return value

def parse_record(line: str, line_no: int = 0, seq_num: int = 0) -> PacketRecord:
    """
    解析一行输入

    格式: <到达时间> <源地址> <源端口> <目的地址> <目的端口> <长度> [<权重>]
    只接受6个或7个字段，其余情况抛出 MalformedRecordError
    """
    line = line.rstrip('\r\n')
    fields = line.split()
    if len(fields) not in (6, 7):
        raise MalformedRecordError(line_no, line, f"字段数应为6或7，实际为{len(fields)}")

    arrival_time = _parse_uint(fields[0], "到达时间", line_no, line)
    length = _parse_uint(fields[5], "长度", line_no, line)
    if length == 0:
        raise MalformedRecordError(line_no, line, "长度必须大于0")

    weight = None
    if len(fields) == 7:
        try:
            weight = float(fields[6])
        except ValueError:
            raise MalformedRecordError(line_no, line, f"权重不是数字: {fields[6]!r}") from None
        if not math.isfinite(weight) or weight <= 0:
            raise MalformedRecordError(line_no, line, f"权重必须为正数: {fields[6]}")

    return PacketRecord(
        arrival_time=arrival_time,
        flow_key=" ".join(fields[1:5]),
        length=length,
        explicit_weight=weight,
        seq_num=seq_num,
        line_no=line_no
    )

class RecordReader:
    """
    按行拉取记录，最多缓存一个预读记录

    调度器通过 peek() 查看下一条记录的到达时间，确认可以接纳后再 consume()
    """

    def __init__(self, lines: Iterable[str]):
        self._lines: Iterator[str] = iter(lines)
        self._lookahead: Optional[PacketRecord] = None
        self._exhausted = False
        self.line_no = 0
        self.records_read = 0

    def peek(self) -> Optional[PacketRecord]:
        """返回下一条未消费的记录，输入耗尽时返回None"""
        if self._lookahead is None and not self._exhausted:
            line = next(self._lines, None)
            if line is None:
                self._exhausted = True
            else:
                self.line_no += 1
                self._lookahead = parse_record(line, self.line_no, self.records_read)
                self.records_read += 1
        return self._lookahead

    def consume(self) -> PacketRecord:
        """消费预读记录"""
        record = self.peek()
        if record is None:
            raise EOFError("输入已耗尽")
        self._lookahead = None
        return record

    @property
    def exhausted(self) -> bool:
        return self._exhausted and self._lookahead is None
