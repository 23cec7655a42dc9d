"""SVG export for paint-by-numbers templates and color legends."""
import math
from pathlib import Path
from typing import List, Optional, Union

from pbnvec.types import PaletteEntry, SegmentationResult
from pbnvec.smooth import contour_to_path_data, format_number

SVG_NS = "http://www.w3.org/2000/svg"

LEGEND_ITEM_WIDTH = 180
LEGEND_ITEM_HEIGHT = 40
LEGEND_PADDING = 10
LEGEND_MAX_COLUMNS = 4


def generate_svg(
    result: SegmentationResult,
    show_numbers: bool = True,
    number_size: int = 12,
    line_width: float = 1.5,
    show_colors: bool = False,
    background_color: str = "#ffffff",
    tolerance: float = 2.0,
    max_segment_length: Optional[float] = 10.0,
    tension: float = 0.5,
    precision: int = 2
) -> str:
    """
    Render the template SVG.

    Every region becomes one stroked path with round joins so shared
    boundaries do not show doubled corners. Numbers are drawn at region
    centroids in a separate group above the outlines.

    Args:
        result: Segmentation output
        show_numbers: Draw each region's color id
        number_size: Font size of the numbers
        line_width: Outline stroke width
        show_colors: Fill regions with their palette color
        background_color: Background rectangle fill
        tolerance: Contour simplification tolerance in pixels
        max_segment_length: Densification step before smoothing
        tension: Catmull-Rom tension
        precision: Decimal places for coordinates

    Returns:
        Complete SVG string
    """
    width, height = result.width, result.height

    path_elements = []
    for region in result.regions:
        path_data = contour_to_path_data(
            region.contour, tolerance, max_segment_length, tension, precision
        )
        if not path_data:
            continue
        fill = result.color_for(region).hex if show_colors else "none"
        path_elements.append(
            f'<path d="{path_data}" fill="{fill}" stroke="#000000" '
            f'stroke-width="{format_number(line_width)}" '
            f'stroke-linejoin="round" stroke-linecap="round" '
            f'data-region="{region.id}" data-color="{region.color_id}"/>'
        )

    parts = [
        f'<svg xmlns="{SVG_NS}" width="{width}" height="{height}" viewBox="0 0 {width} {height}">',
        f'  <rect width="{width}" height="{height}" fill="{background_color}"/>',
        '  <g id="regions">',
    ]
    parts.extend(f"    {elem}" for elem in path_elements)
    parts.append("  </g>")

    if show_numbers:
        parts.append('  <g id="numbers">')
        for region in result.regions:
            x = int(round(region.centroid[0]))
            y = int(round(region.centroid[1]))
            parts.append(
                f'    <text x="{x}" y="{y}" font-size="{number_size}" font-weight="bold" '
                f'text-anchor="middle" dominant-baseline="middle" fill="#666666" '
                f'font-family="Arial, sans-serif">{region.color_id}</text>'
            )
        parts.append("  </g>")

    parts.append("</svg>")
    return "\n".join(parts)


def generate_legend(palette: List[PaletteEntry]) -> str:
    """
    Render the color legend as a grid of numbered swatches.

    Each item shows the palette id, a swatch, the display name and the
    hex code. Up to four items per row.
    """
    if not palette:
        return f'<svg xmlns="{SVG_NS}" width="0" height="0" viewBox="0 0 0 0"></svg>'

    columns = min(LEGEND_MAX_COLUMNS, len(palette))
    rows = math.ceil(len(palette) / columns)
    width = columns * LEGEND_ITEM_WIDTH + (columns + 1) * LEGEND_PADDING
    height = rows * LEGEND_ITEM_HEIGHT + (rows + 1) * LEGEND_PADDING

    parts = [
        f'<svg xmlns="{SVG_NS}" width="{width}" height="{height}" viewBox="0 0 {width} {height}">',
        f'  <rect width="{width}" height="{height}" fill="#ffffff"/>',
    ]

    for index, entry in enumerate(palette):
        col = index % columns
        row = index // columns
        x = col * LEGEND_ITEM_WIDTH + (col + 1) * LEGEND_PADDING
        y = row * LEGEND_ITEM_HEIGHT + (row + 1) * LEGEND_PADDING

        parts.extend([
            f'  <g class="legend-item" data-color="{entry.id}">',
            f'    <rect x="{x}" y="{y}" width="{LEGEND_ITEM_WIDTH}" height="{LEGEND_ITEM_HEIGHT}" '
            f'fill="#f9f9f9" stroke="#e0e0e0" rx="4"/>',
            f'    <rect x="{x + 5}" y="{y + 5}" width="30" height="30" '
            f'fill="#ffffff" stroke="#cccccc" rx="4"/>',
            f'    <text x="{x + 20}" y="{y + 22}" font-size="14" font-weight="bold" '
            f'text-anchor="middle" fill="#333333">{entry.id}</text>',
            f'    <rect x="{x + 40}" y="{y + 5}" width="30" height="30" '
            f'fill="{entry.hex}" stroke="#cccccc" rx="4"/>',
            f'    <text x="{x + 75}" y="{y + 16}" font-size="11" font-weight="600" '
            f'fill="#333333">{entry.name}</text>',
            f'    <text x="{x + 75}" y="{y + 30}" font-size="9" font-family="monospace" '
            f'fill="#999999">{entry.hex}</text>',
            "  </g>",
        ])

    parts.append("</svg>")
    return "\n".join(parts)


def save_svg(svg_string: str, output_path: Union[str, Path]) -> None:
    """
    Save SVG string to file.

    Args:
        svg_string: SVG content
        output_path: Output file path
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(svg_string)
