"""
Manufacturing Machine-Events Dashboard

Analytics backend that turns a flat export of machine-shift events
(downtime, production, OEE) into filtered, dashboard-ready summaries.

Pipeline:
    loaders.load_machine_events -> filters.apply_filters -> aggregations.*

To connect to Streamlit/Dash:
    Keep one dashboard.DashboardController per session, call reload(), then
    set_filters(...) and read downtime_view() / production_view() /
    oee_view() for cards and charts (Plotly).

To point at a different export:
    Set MFG_DASHBOARD_SOURCE to a local path or an http(s) URL of a CSV or
    .xlsx file with the Data2.csv columns.
"""
