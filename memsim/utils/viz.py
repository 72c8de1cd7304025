import plotly.express as px
import pandas as pd

def export_latency_chart(timeline, path: str):
    if not timeline:
        with open(path, "w") as f:
            f.write("<h1>Access Latency</h1><p>No data to display.</p>")
        return

    df = pd.DataFrame(timeline)
    # Ensure numeric types for cycle columns, coercing errors
    df['index'] = pd.to_numeric(df['index'], errors='coerce')
    df['cycles'] = pd.to_numeric(df['cycles'], errors='coerce')
    df = df.dropna(subset=['index', 'cycles'])

    hover_data_cols = ['address', 'type', 'hit_level', 'cycles']
    existing_hover_cols = [c for c in hover_data_cols if c in df.columns]

    fig = px.scatter(
        df,
        x="index",
        y="cycles",
        color="hit_level",
        hover_data=existing_hover_cols,
        title="Memory Hierarchy Access Latency",
        labels={"index": "Access", "cycles": "Cycles", "hit_level": "Serviced By"}
    )

    fig.update_layout(
        height=500,
        font=dict(family="Courier New, monospace", size=12),
        legend_title="Serviced By"
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)

def export_hit_histogram_ascii(aggregated, hierarchy):
    if not hierarchy:
        return "Hierarchy is empty."

    total_hits = sum(aggregated.get(name, {}).get('hits', 0) for name in hierarchy)
    if total_hits == 0:
        return "No accesses recorded."

    chart = "Accesses Serviced Per Level (ASCII Histogram)\n"
    chart += ("-" * 70) + "\n"
    for name in hierarchy:
        hits = aggregated.get(name, {}).get('hits', 0)
        bar = '#' * int(round(50 * hits / total_hits))
        chart += f"{name:>12} |{bar:<50}| {hits}\n"
    chart += ("-" * 70) + "\n"
    chart += f"{total_hits} accesses\n"

    return chart
