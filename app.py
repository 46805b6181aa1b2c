"""
Machine Events: Interactive Manufacturing Dashboard

Run with:  streamlit run app.py
"""

import plotly.graph_objects as go
import streamlit as st

from mfg_dashboard.aggregations import classify_oee, format_minutes, oee_band_label
from mfg_dashboard.config import DATA_SOURCE, FILTER_CONTROLS, TOP_N
from mfg_dashboard.dashboard import DashboardController, month_label

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Manufacturing Dashboard",
    page_icon="🏭",
    layout="wide",
    initial_sidebar_state="expanded",
)

RAG_COLORS = {
    "green": "#10b981",
    "amber": "#f59e0b",
    "red": "#ef4444",
    "grey": "#95a5a6",
}

ALL = "All"


# ---------------------------------------------------------------------------
# Session state: one controller per browser session
# ---------------------------------------------------------------------------
def get_controller() -> DashboardController:
    if "controller" not in st.session_state:
        st.session_state.controller = DashboardController(DATA_SOURCE)
    return st.session_state.controller


def reload_data(controller: DashboardController) -> None:
    with st.spinner("Loading data..."):
        controller.reload()


controller = get_controller()
if controller.status == "idle":
    reload_data(controller)

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("Machine Events")
st.sidebar.markdown("Manufacturing Analytics Dashboard")

page = st.sidebar.radio(
    "Navigate",
    ["Overview", "Downtime", "Production", "OEE"],
)

st.sidebar.divider()
st.sidebar.subheader("Filters")

options = controller.filter_options


def _select(label: str, values: list, key: str, format_func=str):
    choices = [ALL] + list(values)
    choice = st.sidebar.selectbox(
        label,
        choices,
        key=key,
        format_func=lambda v: v if v == ALL else format_func(v),
        disabled=controller.is_loading,
    )
    return None if choice == ALL else choice


selected = {
    field: _select(
        label,
        options.get(options_key, []),
        f"f_{field}",
        month_label if field == "month" else str,
    )
    for field, (label, options_key) in FILTER_CONTROLS.items()
}
controller.set_filters(**selected)


def _reset_filters() -> None:
    for field in FILTER_CONTROLS:
        st.session_state[f"f_{field}"] = ALL


col_a, col_b = st.sidebar.columns(2)
col_a.button("Reset Filters", on_click=_reset_filters, use_container_width=True)
if col_b.button("Reload Data", use_container_width=True):
    reload_data(controller)
    st.rerun()

st.sidebar.divider()
st.sidebar.caption(f"Source: {controller.source}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def show_error_state() -> bool:
    """Render the error banner with a retry action; True if an error is shown."""
    if controller.status != "error":
        return False
    st.error(controller.error)
    st.caption("Check that the data file is in the correct location and format.")
    if st.button("Retry"):
        reload_data(controller)
        st.rerun()
    return True


def show_empty_state() -> bool:
    if not controller.empty_result:
        return False
    st.info("No data available for the selected filters")
    st.button("Reset Filters", key="reset_empty", on_click=_reset_filters)
    return True


def stat_card(label: str, value: str, color: str) -> None:
    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {color}22, {color}11);
                    border-left: 4px solid {color};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{value}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def bar_chart(x, y, title: str, y_title: str, color, horizontal: bool = False) -> go.Figure:
    if horizontal:
        bar = go.Bar(x=y, y=x, orientation="h", marker_color=color)
    else:
        bar = go.Bar(x=x, y=y, marker_color=color)
    fig = go.Figure(bar)
    fig.update_layout(
        title=title,
        height=380,
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=40, b=40),
    )
    if horizontal:
        fig.update_layout(xaxis_title=y_title, yaxis=dict(autorange="reversed"))
    else:
        fig.update_layout(yaxis_title=y_title, xaxis_tickangle=-45)
    return fig


def period_charts(view: dict, value_col: str, y_title: str, color: str, key: str) -> None:
    mode = st.radio("View", ["Monthly", "Daily"], horizontal=True, key=key)
    frame = view["monthly"] if mode == "Monthly" else view["daily"]
    x_col = "month" if mode == "Monthly" else "date"
    if frame.empty:
        st.info(f"No {mode.lower()} data available")
        return
    colors = frame["rag"].map(RAG_COLORS).tolist() if "rag" in frame.columns else color
    st.plotly_chart(
        bar_chart(frame[x_col], frame[value_col], f"{mode} {y_title}", y_title, colors),
        use_container_width=True,
    )


def machine_charts(view: dict, x_title: str, value_col: str = "total") -> None:
    col1, col2 = st.columns(2)
    with col1:
        top = view["top_machines"]
        if top.empty:
            st.info("No machine data available")
        else:
            st.plotly_chart(
                bar_chart(top["label"], top[value_col], f"Top {TOP_N} Machines", x_title,
                          "#ef4444", horizontal=True),
                use_container_width=True,
            )
    with col2:
        bottom = view["bottom_machines"]
        if not bottom.empty:
            st.plotly_chart(
                bar_chart(bottom["label"], bottom[value_col], f"Bottom {TOP_N} Machines", x_title,
                          "#10b981", horizontal=True),
                use_container_width=True,
            )


# ===========================================================================
# PAGE: Overview
# ===========================================================================
if page == "Overview":
    st.title("Executive Dashboard")
    st.caption("Performance overview and key metrics")

    if not show_error_state() and not show_empty_state() and controller.has_data:
        downtime = controller.downtime_view()["stats"]
        production = controller.production_view()["stats"]
        oee = controller.oee_view()["stats"]

        cols = st.columns(3)
        with cols[0]:
            stat_card("Avg. Downtime", format_minutes(downtime["average"]), RAG_COLORS["red"])
        with cols[1]:
            stat_card("Avg. Production", f"{production['average']:,.2f} units", RAG_COLORS["green"])
        with cols[2]:
            stat_card(
                "Avg. OEE",
                f"{oee['average']:.2f}% ({oee_band_label(oee['average'])})",
                RAG_COLORS["amber"],
            )

    st.caption(controller.summary_text())


# ===========================================================================
# PAGE: Downtime
# ===========================================================================
elif page == "Downtime":
    st.title("Downtime Analysis")
    st.caption("Filter and visualize machine downtime metrics")

    if not show_error_state() and not show_empty_state() and controller.has_data:
        view = controller.downtime_view()
        stats = view["stats"]

        cols = st.columns(3)
        with cols[0]:
            color = RAG_COLORS["amber"] if stats["average"] > 60 else "#3498db"
            stat_card("Average Downtime", format_minutes(stats["average"]), color)
        with cols[1]:
            stat_card("Minimum Downtime", format_minutes(stats["minimum"]), RAG_COLORS["green"])
        with cols[2]:
            color = RAG_COLORS["red"] if stats["maximum"] > 120 else RAG_COLORS["amber"]
            stat_card("Maximum Downtime", format_minutes(stats["maximum"]), color)

        st.divider()
        period_charts(view, "downtime", "Downtime (minutes)", "#ef4444", "downtime_period")

        st.divider()
        st.subheader("Machine Downtime")
        machine_charts(view, "Downtime (minutes)")

        st.caption(controller.summary_text())


# ===========================================================================
# PAGE: Production
# ===========================================================================
elif page == "Production":
    st.title("Production Analysis")
    st.caption("Production units by month, day and machine")

    if not show_error_state() and not show_empty_state() and controller.has_data:
        view = controller.production_view()
        stats = view["stats"]

        cols = st.columns(3)
        with cols[0]:
            stat_card("Average Production", f"{stats['average']:,.2f} units", "#3498db")
        with cols[1]:
            stat_card("Minimum Production", f"{stats['minimum']:,.2f} units", RAG_COLORS["amber"])
        with cols[2]:
            stat_card("Maximum Production", f"{stats['maximum']:,.2f} units", RAG_COLORS["green"])

        st.divider()
        period_charts(view, "production", "Production (units)", "#10b981", "production_period")

        st.divider()
        st.subheader("Machine Production")
        machine_charts(view, "Production (units)")

        st.caption(controller.summary_text())


# ===========================================================================
# PAGE: OEE
# ===========================================================================
elif page == "OEE":
    st.title("Overall Equipment Effectiveness")
    st.caption("Average OEE by period and machine")

    if not show_error_state() and not show_empty_state() and controller.has_data:
        view = controller.oee_view()
        stats = view["stats"]

        cols = st.columns(3)
        for col, (label, key) in zip(cols, [("Average OEE", "average"),
                                            ("Minimum OEE", "minimum"),
                                            ("Maximum OEE", "maximum")]):
            with col:
                value = stats[key]
                stat_card(label, f"{value:.2f}% · {oee_band_label(value)}",
                          RAG_COLORS[classify_oee(value)])

        st.divider()
        period_charts(view, "average_oee", "Average OEE (%)", "#3498db", "oee_period")

        st.divider()
        st.subheader("Machine Performance")
        st.caption("Machines with at least 3 readings, ranked by average OEE")
        machine_charts(view, "Average OEE (%)", value_col="average")

        st.caption(controller.summary_text())
