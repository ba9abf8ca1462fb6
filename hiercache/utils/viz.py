import plotly.express as px
import pandas as pd

LEVEL_ORDER = ["L1", "L2", "L3", "memory"]


def export_access_chart(timeline, path: str):
    if not timeline:
        with open(path, "w") as f:
            f.write("<h1>Cache Access Timeline</h1><p>No data to display.</p>")
        return

    df = pd.DataFrame(timeline)
    # Ensure numeric types for latency columns, coercing errors
    df['latency'] = pd.to_numeric(df['latency'], errors='coerce')
    df = df.dropna(subset=['latency'])
    df['address_hex'] = df['address'].map(lambda a: f"0x{int(a):x}")
    if 'evicted' in df.columns:
        df['evicted'] = df['evicted'].map(
            lambda ev: ", ".join(f"{e['level']}:0x{e['block']:x}" for e in ev) if isinstance(ev, list) else ""
        )

    hover_data_cols = ['address_hex', 'type', 'latency', 'evicted']
    existing_hover_cols = [c for c in hover_data_cols if c in df.columns]
    levels = [lvl for lvl in LEVEL_ORDER if lvl in set(df['hit_level'])]
    levels += sorted(set(df['hit_level']) - set(levels))

    fig = px.bar(
        df,
        x="id",
        y="latency",
        color="hit_level",
        hover_data=existing_hover_cols,
        category_orders={"hit_level": levels},
        title="Cache Hierarchy Access Timeline",
        labels={"id": "Access #", "latency": "Latency (cycles)", "hit_level": "Served by"}
    )
    fig.update_layout(
        font=dict(family="Courier New, monospace", size=12),
        legend_title="Served by",
        bargap=0.1,
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)


def export_summary_ascii(hit_counts, total_accesses, width: int = 50):
    if total_accesses == 0:
        return "No accesses simulated."

    chart = "Cache Hierarchy Hit Distribution\n"
    chart += "-" * (width + 24) + "\n"
    for level, hits in hit_counts.items():
        share = hits / total_accesses
        bar = "#" * int(round(share * width))
        chart += f"{level:>8} |{bar:<{width}}| {share:7.2%} ({hits})\n"
    chart += "-" * (width + 24) + "\n"
    return chart
