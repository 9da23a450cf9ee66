import io
import logging
import os
import markdown
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from jinja2 import Environment, FileSystemLoader, select_autoescape
from sourcemind.models.repository import LanguageBreakdown, language_shares
from sourcemind.renderer.manifest import RenderManifest

logger = logging.getLogger(__name__)

CHART_COLORS = ["#6366f1", "#22d3ee", "#f59e0b", "#10b981", "#ef4444", "#a855f7", "#64748b"]
MAX_CHART_SLICES = 6


def md(text: str) -> str:
    if not text:
        return ""
    return markdown.markdown(text, extensions=["extra"])


def language_chart_svg(languages: LanguageBreakdown) -> str:
    """
    Renders the language breakdown as an inline SVG donut chart.
    Languages past MAX_CHART_SLICES are folded into "Other".
    """
    shares = language_shares(languages)
    if not shares:
        return ""
    if len(shares) > MAX_CHART_SLICES:
        head = shares[:MAX_CHART_SLICES]
        shares = head + [("Other", 100.0 - sum(p for _, p in head))]

    fig = plt.figure(figsize=(3, 3))
    try:
        ax = fig.add_subplot(111)
        ax.pie(
            [p for _, p in shares],
            colors=CHART_COLORS[:len(shares)],
            startangle=90,
            counterclock=False,
            wedgeprops={"width": 0.35, "edgecolor": "none"},
        )
        ax.set_aspect("equal")

        buf = io.BytesIO()
        fig.savefig(buf, format="svg", bbox_inches="tight", pad_inches=0.05, transparent=True)
    finally:
        plt.close(fig)

    svg_data = buf.getvalue().decode("utf-8")
    # Strip the XML prolog so the SVG can be inlined
    start_idx = svg_data.find("<svg")
    return svg_data[start_idx:] if start_idx != -1 else svg_data


def render_to_html(manifest: RenderManifest, output_path: str) -> str:
    """
    Renders the manifest to an HTML report and returns the written path.
    """
    analysis = manifest.analysis

    shares = language_shares(manifest.languages)
    legend = [
        {"name": name, "percent": round(percent, 1), "color": CHART_COLORS[min(i, len(CHART_COLORS) - 1)]}
        for i, (name, percent) in enumerate(shares)
    ]

    render_context = {
        "manifest": {
            "metadata": manifest.metadata,
            "analysis": analysis,
            "summary_html": md(analysis.summary),
            "purpose_html": md(analysis.purpose),
            "installation_html": md(analysis.installation),
            "languages": legend,
            "language_chart": language_chart_svg(manifest.languages),
            "theme": manifest.theme,
            "typography": manifest.typography,
        }
    }

    template_dir = os.path.join(os.path.dirname(__file__), "templates")
    env = Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html"]),
    )
    template = env.get_template("report.html")
    html_content = template.render(**render_context)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html_content)
    logger.debug("Report written to %s", output_path)

    return output_path
