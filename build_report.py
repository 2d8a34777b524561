import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    Preformatted,
    SimpleDocTemplate,
    Spacer,
)


@dataclass
class ReportArtifacts:
    title: str = "Movie Plot Topic Analysis"
    settings: Dict[str, object] = field(default_factory=dict)
    metrics_table: Optional[pd.DataFrame] = None
    top_terms: Optional[pd.DataFrame] = None
    genre_alignment: Optional[pd.DataFrame] = None
    significance: Optional[pd.DataFrame] = None
    cluster_sizes: Optional[pd.Series] = None
    scree_plot: Optional[str] = None
    top_terms_plot: Optional[str] = None
    genre_plot: Optional[str] = None
    cluster_plot: Optional[str] = None
    centroid_plot: Optional[str] = None
    wordclouds: List[str] = field(default_factory=list)


def _table_block(frame: pd.DataFrame, float_format="{:.4f}") -> List[str]:
    text = frame.to_string(index=False, float_format=lambda v: float_format.format(v))
    return ["```", *text.splitlines(), "```", ""]


def _image_line(path: Optional[str], caption: str, base_dir: str) -> List[str]:
    if not path or not os.path.exists(path):
        return []
    rel = os.path.relpath(path, base_dir)
    return [f"![{caption}]({rel})", ""]


def build_markdown(artifacts: ReportArtifacts, base_dir: str) -> str:
    lines = [f"# {artifacts.title}", ""]

    if artifacts.settings:
        lines += ["## Settings", ""]
        lines += [f"- {k}: {v}" for k, v in artifacts.settings.items()]
        lines.append("")

    if artifacts.metrics_table is not None and not artifacts.metrics_table.empty:
        lines += ["## Choosing the number of topics", ""]
        lines += _table_block(artifacts.metrics_table)
        lines += _image_line(artifacts.scree_plot, "Candidate topic counts (scaled metric scores)", base_dir)

    if artifacts.top_terms is not None and not artifacts.top_terms.empty:
        lines += ["## Topics", ""]
        summary = (
            artifacts.top_terms.groupby("topic")["term"]
            .apply(lambda s: ", ".join(s))
            .reset_index(name="top terms")
        )
        lines += _table_block(summary)
        lines += _image_line(artifacts.top_terms_plot, "Top terms per topic (beta)", base_dir)

    if artifacts.genre_alignment is not None and not artifacts.genre_alignment.empty:
        lines += ["## Genres and topics", ""]
        lines += _table_block(artifacts.genre_alignment)
        lines += _image_line(artifacts.genre_plot, "Mean topic weight by genre (gamma)", base_dir)
        if artifacts.significance is not None and not artifacts.significance.empty:
            lines += _table_block(artifacts.significance)

    if artifacts.cluster_sizes is not None and len(artifacts.cluster_sizes):
        lines += ["## Clusters", ""]
        lines += [f"- Cluster {c}: {n} documents" for c, n in artifacts.cluster_sizes.items()]
        lines.append("")
        lines += _image_line(artifacts.cluster_plot, "Document clusters (2-D projection)", base_dir)
        lines += _image_line(artifacts.centroid_plot, "Cluster centroids in topic space", base_dir)

    if artifacts.wordclouds:
        lines += ["## Word clouds", ""]
        for path in artifacts.wordclouds:
            name = os.path.splitext(os.path.basename(path))[0].replace("_", " ")
            lines += _image_line(path, name, base_dir)

    return "\n".join(lines) + "\n"


def scaled_image(path, max_width, max_height):
    img = ImageReader(path)
    iw, ih = img.getSize()
    scale = min(max_width / iw, max_height / ih, 1.0)
    return Image(path, iw * scale, ih * scale)


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="TitleStyle", parent=styles["Title"], fontSize=18, leading=22, spaceAfter=12))
    styles.add(ParagraphStyle(name="Heading1Style", parent=styles["Heading1"], fontSize=14, leading=18, spaceAfter=8))
    styles.add(ParagraphStyle(name="BodyStyle", parent=styles["BodyText"], fontSize=10, leading=14, spaceAfter=6))
    styles.add(ParagraphStyle(name="CaptionStyle", parent=styles["BodyText"], fontSize=9, leading=12,
                              spaceAfter=10, textColor=colors.grey))
    styles.add(ParagraphStyle(name="CodeStyle", parent=styles["BodyText"], fontName="Courier",
                              fontSize=7.5, leading=9.5, spaceAfter=8))
    return styles


def parse_markdown(md_text, base_dir, doc_width, doc_height):
    styles = _styles()
    story = []
    bullet_lines = []
    code_lines = []
    in_code = False

    def flush_bullets():
        nonlocal bullet_lines
        for bullet in bullet_lines:
            story.append(Paragraph(escape(bullet), styles["BodyStyle"], bulletText="-"))
        if bullet_lines:
            story.append(Spacer(1, 4))
        bullet_lines = []

    for line in md_text.splitlines():
        if line.startswith("```"):
            if in_code:
                story.append(Preformatted("\n".join(code_lines), styles["CodeStyle"]))
                code_lines = []
            else:
                flush_bullets()
            in_code = not in_code
            continue
        if in_code:
            code_lines.append(line)
            continue

        if line.startswith("#"):
            flush_bullets()
            level = len(line) - len(line.lstrip("#"))
            text = line[level:].strip()
            if level == 1:
                story.append(Paragraph(escape(text), styles["TitleStyle"]))
            else:
                if story and level == 2:
                    story.append(PageBreak())
                story.append(Paragraph(escape(text), styles["Heading1Style"]))
            story.append(Spacer(1, 6))
            continue

        if line.startswith("![") and "](" in line and line.endswith(")"):
            flush_bullets()
            # captions may contain brackets/parentheses; the path follows the last "]("
            caption, path = line[2:-1].rsplit("](", 1)
            img_path = os.path.abspath(os.path.join(base_dir, path))
            if os.path.exists(img_path):
                story.append(scaled_image(img_path, doc_width, doc_height * 0.8))
                if caption:
                    story.append(Paragraph(escape(caption), styles["CaptionStyle"]))
            continue

        if line.startswith("- "):
            bullet_lines.append(line[2:].strip())
            continue

        flush_bullets()
        if line.strip():
            story.append(Paragraph(escape(line.strip()), styles["BodyStyle"]))

    flush_bullets()
    return story


def build_report(artifacts: ReportArtifacts, pdf_path: str) -> str:
    """Writes `<name>.md` and the PDF next to it; returns the PDF path."""
    base_dir = os.path.dirname(os.path.abspath(pdf_path))
    os.makedirs(base_dir, exist_ok=True)
    md_text = build_markdown(artifacts, base_dir)
    with open(os.path.splitext(pdf_path)[0] + ".md", "w", encoding="utf-8") as f:
        f.write(md_text)

    doc = SimpleDocTemplate(
        pdf_path,
        pagesize=A4,
        leftMargin=0.8 * inch,
        rightMargin=0.8 * inch,
        topMargin=0.8 * inch,
        bottomMargin=0.8 * inch,
    )
    doc.build(parse_markdown(md_text, base_dir, doc.width, doc.height))
    return pdf_path
