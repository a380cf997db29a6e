"""Streamlit UI for JobCollector."""
from __future__ import annotations

import os
import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from jobcollector.config import DATA_DIR, ENV_PATH, get_api_key
from jobcollector.controller import DELETE_PROMPT, ApplicationController, build_controller
from jobcollector.errors import JobCollectorError
from jobcollector.log import get_logger
from jobcollector.models import STATUS_LABELS, STATUSES, JobRecord

log = get_logger(__name__)

# ── Constants ────────────────────────────────────────────────────────────

_ENV_KEYS: list[str] = ["LLM_API_KEY", "LLM_BASE_URL", "LLM_MODEL", "LLM_FAST_MODEL", "LLM_VISION_MODEL"]

_GLASS_CSS = """
<style>
[data-testid="stAppViewContainer"] {
    background: linear-gradient(135deg, #eef2ff 0%, #f8fafc 45%, #eef2ff 100%);
}
[data-testid="stSidebar"] {
    background: #0f172a;
}
[data-testid="stSidebar"] * {
    color: #e2e8f0;
}
[data-testid="stMetric"],
[data-testid="stForm"],
[data-testid="stExpander"] {
    background: rgba(255,255,255,0.7);
    backdrop-filter: blur(10px);
    -webkit-backdrop-filter: blur(10px);
    border-radius: 16px;
    border: 1px solid rgba(226,232,240,0.9);
    box-shadow: 0 4px 16px rgba(15,23,42,0.05);
    padding: 0.75rem 1rem;
}
.stButton > button[kind="primary"] {
    border-radius: 12px;
    font-weight: 700;
}
h1, h2, h3 {
    color: #1e293b;
}
.company-hint {
    display: inline-block;
    padding: 0.1rem 0.5rem;
    background: #eef2ff;
    color: #4f46e5;
    border: 1px solid #c7d2fe;
    border-radius: 6px;
    font-size: 0.8rem;
    font-weight: 700;
}
</style>
"""

# ── Helpers ──────────────────────────────────────────────────────────────


def _load_env() -> dict[str, str]:
    values: dict[str, str] = {}
    if ENV_PATH.exists():
        for line in ENV_PATH.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, _, v = line.partition("=")
                values[k.strip()] = v.strip()
    return values


def _save_env(values: dict[str, str]) -> None:
    template_path = ROOT / ".env.example"

    lines: list[str] = []
    written: set[str] = set()

    if template_path.exists():
        for line in template_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                k, _, _ = stripped.partition("=")
                k = k.strip()
                lines.append(f"{k}={values.get(k, '')}")
                written.add(k)
            else:
                lines.append(line)

    for k, v in values.items():
        if k not in written:
            lines.append(f"{k}={v}")

    ENV_PATH.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _controller() -> ApplicationController:
    """One controller per browser session; rebuilt after settings change."""
    if "controller" not in st.session_state:
        st.session_state["controller"] = build_controller()
    return st.session_state["controller"]


def _flash(message: str) -> None:
    st.session_state["_flash"] = message


def _show_flash() -> None:
    msg = st.session_state.pop("_flash", None)
    if msg:
        st.success(msg)


def _status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


# ── Dialogs ──────────────────────────────────────────────────────────────


@st.dialog("手动修改")
def _edit_dialog(job: JobRecord) -> None:
    with st.form(f"edit_{job.id}"):
        title = st.text_input("职位名称", value=job.title)
        c1, c2 = st.columns(2)
        with c1:
            company = st.text_input("公司", value=job.company)
            location = st.text_input("地点", value=job.location)
        with c2:
            status = st.selectbox(
                "投递状态",
                STATUSES,
                index=STATUSES.index(job.status),
                format_func=_status_label,
            )
            salary = st.text_input("薪资", value=job.salary)
        url = st.text_input("链接", value=job.url)
        description = st.text_area("职位描述", value=job.description, height=100)
        requirements = st.text_area("职位要求（每行一条）", value="\n".join(job.requirements), height=100)

        c1, c2 = st.columns(2)
        cancel = c1.form_submit_button("取消", use_container_width=True)
        save = c2.form_submit_button("完成保存", type="primary", use_container_width=True)

    if cancel:
        st.rerun()
    if save:
        edited = job.with_changes(
            title=title,
            company=company,
            location=location,
            salary=salary,
            url=url,
            description=description,
            requirements=[r.strip() for r in requirements.splitlines() if r.strip()],
            status=status,
        )
        try:
            _controller().edit(edited)
            _flash("已保存修改。")
        except JobCollectorError as exc:
            st.error(f"保存失败: {exc}")
            return
        st.rerun()


@st.dialog("删除记录")
def _delete_dialog(job: JobRecord) -> None:
    st.write(DELETE_PROMPT)
    st.caption(f"{job.title} · {job.company}")
    c1, c2 = st.columns(2)
    if c1.button("取消", use_container_width=True):
        st.rerun()
    if c2.button("永久删除", type="primary", use_container_width=True):
        # The dialog itself is the confirmation step.
        if _controller().delete(job.id, confirm=lambda _prompt: True):
            _flash("记录已删除。")
        st.rerun()


# ── Page: Capture ────────────────────────────────────────────────────────


def page_capture() -> None:
    st.header("智能采集")
    st.write("支持链接解析、文本识别及截图 OCR。")
    _show_flash()

    ctl = _controller()

    if not get_api_key():
        st.warning("No LLM API key set. Add one in **Settings**; until then URL and text capture fall back to placeholders.")

    use_ai = st.toggle("AI 深度检索", value=False, help="开启后支持联网抓取页面内容")

    # ── Option A: URL ────────────────────────────────────────────────────
    st.subheader("方案 A: 招聘链接解析")
    url = st.text_input("招聘链接", placeholder="在此粘贴企业招聘官网链接...", key="capture_url")

    hint = ctl.identify_company(url)
    if hint:
        st.markdown(f'<span class="company-hint">匹配公司: {hint}</span>', unsafe_allow_html=True)

    if st.button("提取职位", type="primary", disabled=not url.strip(), use_container_width=True):
        with st.spinner("正在解析链接…"):
            try:
                job = ctl.capture_url(url, use_ai=use_ai)
            except JobCollectorError as exc:
                log.error("URL capture failed: %s", getattr(exc, "cause", None) or exc)
                st.error(str(exc))
                job = None
        if job:
            _flash(f"已采集: {job.title} @ {job.company}")
            st.switch_page(_PAGES["history"])

    if not use_ai:
        st.caption("提示：当前为本地解析，若无法识别职位名，请开启「深度检索」或粘贴文本。")

    st.divider()

    # ── Option B: text or screenshot ─────────────────────────────────────
    st.subheader("备选方案")
    tab_text, tab_ocr = st.tabs(["粘贴文本内容", "上传职位截图"])

    with tab_text:
        text = st.text_area("职位描述", placeholder="粘贴职位描述或职位要求...", height=140)
        if st.button("解析文本内容", disabled=not text.strip(), use_container_width=True):
            with st.spinner("正在解析文本…"):
                try:
                    job = ctl.capture_text(text, url=url)
                except JobCollectorError as exc:
                    log.error("Text capture failed: %s", exc)
                    st.error("文本提取失败")
                    job = None
            if job:
                _flash(f"已采集: {job.title} @ {job.company}")
                st.switch_page(_PAGES["history"])

    with tab_ocr:
        uploaded = st.file_uploader("上传截图进行 OCR 识别", type=["png", "jpg", "jpeg", "webp"])
        st.caption("AI 将自动从图中提取职位和薪资信息")
        if uploaded and st.button("识别截图", use_container_width=True):
            with st.spinner("正在识别截图…"):
                try:
                    job = ctl.capture_image(uploaded.getvalue(), url=url, mime_type=uploaded.type or "image/png")
                except JobCollectorError as exc:
                    log.error("Image capture failed: %s", getattr(exc, "cause", None) or exc)
                    st.error(str(exc))
                    job = None
            if job:
                _flash(f"已采集: {job.title} @ {job.company}")
                st.switch_page(_PAGES["history"])


# ── Page: History ────────────────────────────────────────────────────────


def _job_card(job: JobRecord) -> None:
    with st.container(border=True):
        st.markdown(f"**{job.title}**")
        st.caption(f"{job.company}" + (f" · {job.location}" if job.location else ""))
        if job.salary:
            st.markdown(f"💰 {job.salary}")
        st.markdown(f"`{_status_label(job.status)}` · {job.date_captured[:10]}")
        if job.url.startswith("http"):
            st.markdown(f"[查看原链接]({job.url})")
        c1, c2 = st.columns(2)
        if c1.button("编辑", key=f"edit_{job.id}", use_container_width=True):
            _edit_dialog(job)
        if c2.button("删除", key=f"del_{job.id}", use_container_width=True):
            _delete_dialog(job)


def page_history() -> None:
    st.header("投递清单")
    _show_flash()

    ctl = _controller()
    jobs = ctl.records()

    counts = ctl.status_counts()
    cols = st.columns(len(STATUSES) + 1)
    cols[0].metric("全部", len(jobs))
    for col, status in zip(cols[1:], STATUSES):
        col.metric(_status_label(status), counts[status])

    query = st.text_input("搜索职位或公司...", key="history_query")
    matches = ctl.search(query)

    tab_cards, tab_table = st.tabs(["卡片", "表格"])

    with tab_cards:
        if not matches:
            st.info("没有发现记录。快去采集你的第一份岗位吧！")
        for i in range(0, len(matches), 3):
            row = st.columns(3)
            for col, job in zip(row, matches[i:i + 3]):
                with col:
                    _job_card(job)

    with tab_table:
        if matches:
            import pandas as pd

            df = pd.DataFrame([j.to_dict() for j in matches])
            df["status"] = df["status"].map(_status_label)
            st.dataframe(
                df[["title", "company", "location", "salary", "status", "dateCaptured", "url"]],
                use_container_width=True,
                column_config={"url": st.column_config.LinkColumn("URL")},
                hide_index=True,
            )

    st.divider()
    filename, content = ctl.export_csv()
    st.download_button(
        "导出 CSV",
        data=content.encode("utf-8"),
        file_name=filename,
        mime="text/csv",
        disabled=not jobs,
    )


# ── Page: Settings ───────────────────────────────────────────────────────


def page_settings() -> None:
    st.header("Settings")
    _show_flash()

    tab_llm, tab_data = st.tabs(["LLM Service", "Data Management"])

    with tab_llm:
        env = _load_env()
        with st.form("llm_settings"):
            st.markdown(
                "Any OpenAI-compatible endpoint works. The default is Groq "
                "([get a free key](https://console.groq.com/keys))."
            )
            key = st.text_input(
                "API key",
                value=env.get("LLM_API_KEY", "") or env.get("GROQ_API_KEY", ""),
                type="password",
                placeholder="gsk_...",
            )
            base_url = st.text_input("Base URL", value=env.get("LLM_BASE_URL", ""), placeholder="https://api.groq.com/openai/v1")
            c1, c2, c3 = st.columns(3)
            model = c1.text_input("Deep-search model", value=env.get("LLM_MODEL", ""), placeholder="default")
            fast = c2.text_input("Fast model", value=env.get("LLM_FAST_MODEL", ""), placeholder="default")
            vision = c3.text_input("Vision model", value=env.get("LLM_VISION_MODEL", ""), placeholder="default")

            if st.form_submit_button("Save", type="primary", use_container_width=True):
                env.update({
                    "LLM_API_KEY": key, "LLM_BASE_URL": base_url,
                    "LLM_MODEL": model, "LLM_FAST_MODEL": fast, "LLM_VISION_MODEL": vision,
                })
                _save_env(env)
                for k in _ENV_KEYS:
                    if env.get(k):
                        os.environ[k] = env[k]
                    else:
                        os.environ.pop(k, None)
                st.session_state.pop("controller", None)
                _flash("Settings saved.")
                st.rerun()

    with tab_data:
        st.subheader("Clear Data")
        st.caption(f"Job records are stored in `{DATA_DIR}`.")
        confirm = st.checkbox("I understand this permanently deletes every record")
        if st.button("Clear application history", disabled=not confirm):
            _controller().store.clear()
            _flash("Application history cleared.")
            st.rerun()


# ── Main ─────────────────────────────────────────────────────────────────


def _inject_css() -> None:
    st.markdown(_GLASS_CSS, unsafe_allow_html=True)


def _sidebar() -> None:
    with st.sidebar:
        st.markdown("### 🚀 JobCollector")
        st.caption("智能求职管理系统")
        st.divider()
        st.markdown(f"{'✅' if get_api_key() else '⬜'}  LLM API key")
        st.markdown(f"📦  {len(_controller().records())} 条记录")


def _wrap_capture():
    _inject_css()
    _sidebar()
    page_capture()


def _wrap_history():
    _inject_css()
    _sidebar()
    page_history()


def _wrap_settings():
    _inject_css()
    _sidebar()
    page_settings()


_PAGES = {
    "capture": st.Page(_wrap_capture, title="采集新职位", icon="➕", url_path="capture", default=True),
    "history": st.Page(_wrap_history, title="投递历史", icon="🗂️", url_path="history"),
    "settings": st.Page(_wrap_settings, title="Settings", icon="⚙️", url_path="settings"),
}

nav = st.navigation(list(_PAGES.values()))
nav.run()
