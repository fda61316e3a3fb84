"""
Streamlit Dashboard
Steam Insight — Domestic Game Review Intelligence

Sections:
  1. Sidebar — scan top sellers, manual search (name or AppID)
  2. Game list (scan results / search results)
  3. Review filters (playtime, date) with live match count
  4. AI analysis report (score gauge, pros / cons / issues)
  5. Charts (sentiment split, playtime distribution)
  6. Text report download
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import streamlit as st
import pandas as pd
import numpy as np
import plotly.express as px
import plotly.graph_objects as go
from datetime import date
from typing import List, Optional

from agents.reviews import FilterCriteria, ReviewFetchError, filter_reviews
from agents.summarizer import SummaryError, summarize
from config.settings import settings
from models.schemas import AnalysisReport, Candidate, Review
from utils import pipeline
from utils.report import (
    format_report_text, report_filename, sentiment_split, playtime_distribution,
)

# ─── Page Config ─────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Steam Insight",
    page_icon="🎮",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    h1 { color: #66c0f4; }
    .stAlert { border-radius: 8px; }
</style>
""", unsafe_allow_html=True)


# ─── State Management ────────────────────────────────────────────────────────

def get_state():
    defaults = {
        "games": [],
        "selected_game": None,
        "reviews": [],
        "report": None,
        "error": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value
    return st.session_state


def select_game(state, game: Candidate, limit: int):
    state.selected_game = game
    state.report = None
    state.error = None
    state.reviews = []
    with st.spinner(f"正在抓取《{game.name}》的评论..."):
        try:
            reviews = pipeline.fetch_reviews(game.app_id, limit)
        except ReviewFetchError as e:
            state.error = str(e)
            return
    if not reviews:
        state.error = "未能抓取到任何评论，可能是网络问题或该游戏无公开评论。"
        return
    state.reviews = reviews


# ─── Sidebar ─────────────────────────────────────────────────────────────────

def render_sidebar(state) -> int:
    with st.sidebar:
        st.title("🎮 Steam Insight")
        st.caption("2025+ 国产热门游戏舆情分析")
        st.divider()

        st.subheader("🔥 热销榜扫描")
        if st.button("开始扫描", type="primary", use_container_width=True):
            status = st.empty()
            try:
                state.games = pipeline.scan(progress_callback=status.info)
                status.success(f"扫描完成：找到 {len(state.games)} 款国产游戏")
            except pipeline.ScanError as e:
                status.error(str(e))
            state.selected_game = None

        st.divider()
        st.subheader("🔎 手动搜索")
        query = st.text_input("游戏名称或 App ID")
        if st.button("搜索", use_container_width=True) and query.strip():
            with st.spinner("搜索中..."):
                results = pipeline.search_by_name_or_id(query)
            if not results:
                st.warning("未找到匹配的游戏。")
            state.games = results
            state.selected_game = None

        st.divider()
        limit = st.slider(
            "抓取评论上限", 100, 5000, settings.DEFAULT_REVIEW_LIMIT, step=100
        )
    return limit


# ─── Game List ───────────────────────────────────────────────────────────────

def render_game_list(state, limit: int):
    games: List[Candidate] = state.games
    if not games:
        st.info("👈 **点击「开始扫描」或在侧栏搜索游戏**，然后选择一款游戏抓取评论。")
        return

    st.subheader(f"📋 游戏列表 ({len(games)})")
    df = pd.DataFrame([{
        "App ID": g.app_id,
        "名称": g.name,
        "发行日期": g.release_date or "—",
        "评测数": g.total_reviews or None,
        "评价": g.review_summary,
        "开发商": g.developer or "—",
        "置信分": g.origin_score,
    } for g in games])
    st.dataframe(df, use_container_width=True, hide_index=True)

    labels = [f"{g.name} ({g.app_id})" for g in games]
    choice = st.selectbox("选择游戏", options=range(len(games)), format_func=lambda i: labels[i])
    if st.button("抓取评论", type="primary"):
        select_game(state, games[choice], limit)
        st.rerun()


# ─── Filters ─────────────────────────────────────────────────────────────────

def render_filters(reviews: List[Review]) -> List[Review]:
    st.subheader("🧮 数据筛选配置")
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**游戏时长 (小时)**")
        min_hours = st.number_input("最短", min_value=0.0, value=0.0, step=1.0)
        max_hours = st.number_input(
            "最长", min_value=0.0, value=float(settings.DEFAULT_MAX_PLAYTIME_HOURS), step=1.0
        )
        st.caption("仅分析在该时长范围内的玩家评论。")
    with col2:
        st.markdown("**评论发布时间**")
        start = st.date_input("开始", value=date.fromisoformat(settings.DEFAULT_FILTER_START_DATE))
        end = st.date_input("结束", value=date.today())
        st.caption("默认选中 2025 年及以后的评论。")

    criteria = FilterCriteria(
        min_playtime_hours=min_hours,
        max_playtime_hours=max_hours,
        start_date=start,
        end_date=end,
    )
    filtered = filter_reviews(reviews, criteria)
    st.caption(f"选中 {len(filtered)} / {len(reviews)} 条评论")
    return filtered


# ─── Report ──────────────────────────────────────────────────────────────────

def render_score_gauge(report: AnalysisReport):
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=report.sentiment_score,
        title={"text": "AI 综合情感评分"},
        gauge={
            "axis": {"range": [0, 100]},
            "bar": {"color": "#66c0f4"},
            "steps": [
                {"range": [0, 40], "color": "#ffebee"},
                {"range": [40, 70], "color": "#fff9c4"},
                {"range": [70, 100], "color": "#e8f5e9"},
            ],
        },
    ))
    fig.update_layout(height=220)
    st.plotly_chart(fig, use_container_width=True)


def render_charts(reviews: List[Review]):
    split = sentiment_split(reviews)
    col1, col2 = st.columns(2)
    with col1:
        fig = px.pie(
            names=["好评", "差评"],
            values=[split["positive"], split["negative"]],
            color_discrete_sequence=["#66c0f4", "#c24229"],
            title="好评 / 差评 分布",
        )
        st.plotly_chart(fig, use_container_width=True)
    with col2:
        buckets = playtime_distribution(reviews)
        df = pd.DataFrame({"时长": list(buckets), "评论数": list(buckets.values())})
        fig = px.bar(df, x="时长", y="评论数", title="评论者游戏时长分布")
        st.plotly_chart(fig, use_container_width=True)

    hours = np.array([r.playtime_hours for r in reviews])
    if hours.size:
        c1, c2, c3 = st.columns(3)
        c1.metric("样本评论", f"{hours.size:,}")
        c2.metric("中位时长", f"{np.median(hours):.1f}h")
        c3.metric("好评率", f"{split['positive'] / hours.size:.0%}")


def render_report(game: Candidate, report: AnalysisReport, reviews: List[Review]):
    st.subheader("🤖 AI 深度分析报告")
    col_l, col_r = st.columns([2, 1])
    with col_l:
        st.markdown(f"**舆情总结**  \n{report.summary}")
        st.markdown(f"**购买建议/最终评价**  \n{report.verdict}")
    with col_r:
        render_score_gauge(report)

    c1, c2, c3 = st.columns(3)
    with c1:
        st.markdown("**✅ 核心优点**")
        for p in report.positive_points:
            st.markdown(f"- {p}")
    with c2:
        st.markdown("**❌ 主要槽点**")
        for p in report.negative_points:
            st.markdown(f"- {p}")
    with c3:
        st.markdown("**⚠️ 技术问题**")
        for p in report.technical_issues:
            st.markdown(f"- {p}")

    render_charts(reviews)

    st.download_button(
        "📥 导出报告 (TXT)",
        data=format_report_text(game.name, report).encode("utf-8"),
        file_name=report_filename(game.name),
        mime="text/plain",
    )


# ─── Main App ─────────────────────────────────────────────────────────────────

def main():
    st.title("🎮 Steam Insight")
    st.caption("发现、筛选并总结 2025 年后发行的国产热门游戏玩家评论")

    state = get_state()
    limit = render_sidebar(state)

    game: Optional[Candidate] = state.selected_game
    if game is None:
        render_game_list(state, limit)
        return

    st.header(game.name)
    if game.logo:
        st.image(game.logo, width=240)
    if st.button("⬅ 返回列表"):
        state.selected_game = None
        st.rerun()

    if state.error:
        st.error(state.error)
        return

    filtered = render_filters(state.reviews)
    sample = filtered[:settings.SUMMARY_SAMPLE_SIZE]

    if st.button("🚀 开始 AI 分析", type="primary", disabled=not filtered):
        with st.spinner("AI 正在分析评论..."):
            try:
                state.report = summarize(game.name, sample)
            except SummaryError as e:
                st.error(str(e))

    if state.report is not None:
        st.divider()
        render_report(game, state.report, filtered)


if __name__ == "__main__":
    main()
