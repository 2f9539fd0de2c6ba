"""Command-line interface for takeout_stats.

Run:
    python -m takeout_stats -i Records.json -o out
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from takeout_stats.models import DEFAULT_INPUT
from takeout_stats.pipeline import process_file
from takeout_stats.reader import SourceNotFound
from takeout_stats.report import FileReportSink, OutputWriteError


def _run(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.is_file():
        print(f'错误：输入文件 "{input_path}" 不存在。')
        return 0

    out_dir = Path(args.output)
    if not out_dir.exists():
        print(f'输出目录 "{out_dir}" 不存在，正在创建。')
        out_dir.mkdir(parents=True, exist_ok=True)

    print("开始处理")
    sink = FileReportSink(out_dir)
    try:
        summary = process_file(input_path, sink)
    except SourceNotFound as exc:
        print(f"错误：{exc}")
        return 0
    except OutputWriteError as exc:
        print(f"写入报告失败：{exc}（{exc.__cause__}）", file=sys.stderr)
        return 1

    for path in sink.written:
        print(f"已导出：{path}")
    print(
        f"records={summary.records}, skipped={summary.skipped}, "
        f"rejected_pairs={summary.rejected_pairs}, years={summary.years}"
    )
    print(f"耗时：{timedelta(seconds=round(summary.elapsed_seconds))}")
    print("处理结束")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    # 选项后缺少取值时回退到默认值
    p = argparse.ArgumentParser(prog="takeout_stats", description="按天统计位置记录，按年导出报告")
    p.add_argument(
        "-i",
        dest="input",
        type=str,
        nargs="?",
        const=DEFAULT_INPUT,
        default=DEFAULT_INPUT,
        help="输入 JSON 路径（默认 Records.json）",
    )
    p.add_argument("-o", dest="output", type=str, nargs="?", const=".", default=".", help="输出目录（不存在则创建）")
    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint. Unknown flags are ignored."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args, _unknown = parser.parse_known_args(argv)
    return _run(args)


if __name__ == "__main__":
    raise SystemExit(main())
