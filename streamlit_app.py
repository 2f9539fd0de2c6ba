from __future__ import annotations

from pathlib import Path

import streamlit as st

from takeout_stats.models import DEFAULT_INPUT
from takeout_stats.pipeline import RunSummary, process_file
from takeout_stats.reader import SourceNotFound
from takeout_stats.report import STATISTICS_HEADERS, CollectingSink, YearReport, statistics_row


def _year_rows(report: YearReport) -> list[dict[str, object]]:
    """Per-day rows keyed by the workbook headers."""

    return [dict(zip(STATISTICS_HEADERS, statistics_row(d, day))) for d, day in report.days.items()]


def _year_totals(report: YearReport) -> dict[str, float]:
    days = report.days.values()
    return {
        "days": len(report.days),
        "points": sum(d.point_count for d in days),
        "distance_km": sum(d.total_distance_m for d in days) / 1000.0,
        "active_min": sum(d.active_time_min for d in days),
        "vehicle_km": sum(d.vehicle_distance_m for d in days) / 1000.0,
    }


@st.cache_data(show_spinner=False)
def _run(records_json: str, tz_name: str, mtime: float) -> tuple[list[YearReport], RunSummary]:
    _ = mtime  # part of cache key so updated files reload automatically
    sink = CollectingSink()
    summary = process_file(records_json, sink, tz_name=tz_name or None, collect_features=False)
    return sink.reports, summary


def main() -> None:
    st.set_page_config(page_title="位置记录：按天统计", layout="wide")
    st.title("位置记录：按天统计移动距离与出行方式")

    with st.sidebar:
        st.subheader("数据与时区")
        records_json = st.text_input("Records.json 路径", value=DEFAULT_INPUT)
        tz_name = st.text_input("时区（IANA，留空为系统时区）", value="")
        run = st.button("开始统计", type="primary", use_container_width=True)

    p = Path(records_json)
    if not p.is_file():
        st.error(f"找不到文件：{records_json!r}")
        return
    if not run:
        st.info("填写路径后点击左侧“开始统计”。")
        return

    try:
        with st.spinner("正在流式读取并统计 ..."):
            reports, summary = _run(records_json, tz_name, p.stat().st_mtime)
    except (SourceNotFound, ValueError) as exc:
        st.exception(exc)
        return

    c1, c2, c3 = st.columns(3)
    c1.metric("记录数", str(summary.records))
    c2.metric("解析失败（已跳过）", str(summary.skipped))
    c3.metric("异常跳点", str(summary.rejected_pairs))

    if not reports:
        st.warning("没有可统计的记录。")
        return

    for report in reports:
        totals = _year_totals(report)
        st.subheader(f"{report.year} 年")
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("天数", str(totals["days"]))
        c2.metric("点数", str(totals["points"]))
        c3.metric("总距离（km）", f"{totals['distance_km']:.1f}")
        c4.metric("机动车距离（km）", f"{totals['vehicle_km']:.1f}")
        with st.expander("按天明细", expanded=False):
            st.dataframe(_year_rows(report), use_container_width=True, height=360)

    st.caption("说明：日期按所选时区的本地日历日计算；速度超过 1200 km/h 的相邻点视为异常，不计距离。")


if __name__ == "__main__":
    main()
