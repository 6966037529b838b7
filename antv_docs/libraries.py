"""
Registry of the AntV libraries this server knows about.

Pure data plus lookup helpers. The registry is built once at import
time and never mutated.
"""

from typing import Dict, List

from .models import LibraryDescriptor, LibraryNotFoundError


DEFAULT_LIBRARY = "g2"

_G2_KEYWORDS = """
  <marks>
    - interval (bar/column), line, area, point (scatter), cell, rect, text, image
    - link, vector, polygon, box, density, heatmap, wordCloud, gauge, liquid
  </marks>
  <concepts>
    - encode (x, y, color, size, shape, series)
    - transform (stackY, dodgeX, normalizeY, groupX, binX, sortX)
    - scale, coordinate (polar, theta, radial, transpose), facet
    - axis, legend, tooltip, label, annotation, slider, scrollbar
    - interaction (elementHighlight, brushHighlight, tooltip), animate, theme
  </concepts>
  <convention>
    - G2 5.x spec style via chart.options({...}) or chained API style
  </convention>
"""

_F2_KEYWORDS = """
  <components>
    - Text/Image/Point/Tag/Rect guides (TextGuide, ImageGuide, PointGuide, TagGuide, RectGuide)
    - Custom guides and legends (withGuide, withLegend)
    - Timeline
    - Axis
    - Component
    - Tooltip and touch interaction
    - PieLabel
    - PictorialBar
  </components>
  <convention>
    - JSX syntax
    - Guide, Legend, Timeline and Axis components must be used inside the Chart component
  </convention>
"""

_G2_CODE_STYLE = """Use the G2 5.x API. Prefer the spec style for static charts:

```js
import { Chart } from '@antv/g2';

const chart = new Chart({ container: 'container', autoFit: true });

chart.options({
  type: 'interval',
  data: [
    { letter: 'A', frequency: 0.08167 },
    { letter: 'B', frequency: 0.01492 },
  ],
  encode: { x: 'letter', y: 'frequency' },
});

chart.render();
```

The chained API style (chart.interval().data(data).encode('x', 'letter')) is equivalent; do not mix both in one chart."""

_LIBRARIES: Dict[str, LibraryDescriptor] = {
    lib.id: lib
    for lib in (
        LibraryDescriptor(
            id="g2",
            display_name="G2",
            description="Statistical charts, data visualization, business intelligence charts",
            keywords=_G2_KEYWORDS,
            code_style=_G2_CODE_STYLE,
        ),
        LibraryDescriptor(
            id="g6",
            display_name="G6",
            description="Graph analysis, network diagrams, node-link relationships",
            code_style="Use G6 5.x: new Graph({ container, data, node, edge, layout, behaviors }) then graph.render().",
        ),
        LibraryDescriptor(
            id="l7",
            display_name="L7",
            description="Geospatial visualization, maps, geographic data analysis",
            code_style="Create a Scene with a map instance, add layers (PointLayer, LineLayer, PolygonLayer) after scene.on('loaded').",
        ),
        LibraryDescriptor(
            id="x6",
            display_name="X6",
            description="Graph editing, flowcharts, diagram creation tools",
            code_style="Use X6 2.x: new Graph({ container, grid, panning }) and register plugins with graph.use().",
        ),
        LibraryDescriptor(
            id="f2",
            display_name="F2",
            description="Mobile-optimized charts, lightweight visualization",
            keywords=_F2_KEYWORDS,
            code_style="Use F2 4.x JSX components: <Canvas><Chart data={data}>...</Chart></Canvas>.",
        ),
        LibraryDescriptor(
            id="s2",
            display_name="S2",
            description="Table analysis, spreadsheet-like interactions, data grids",
            code_style="Use S2 with a dataCfg (fields, data) and options object, e.g. new PivotSheet(container, dataCfg, options).",
        ),
    )
}

LIBRARY_IDS: List[str] = list(_LIBRARIES)


def is_valid_library(library: str) -> bool:
    return library in _LIBRARIES


def get_library_config(library: str) -> LibraryDescriptor:
    """
    Look up a library descriptor.

    Raises:
        LibraryNotFoundError: If the slug is not one of the known libraries
    """
    try:
        return _LIBRARIES[library]
    except KeyError:
        raise LibraryNotFoundError(library, LIBRARY_IDS) from None


def get_library_keywords(library: str) -> str:
    """Curated terminology for a library, or an empty string."""
    lib = _LIBRARIES.get(library)
    return lib.keywords.strip() if lib else ""


def get_library_description(library: str) -> str:
    lib = _LIBRARIES.get(library)
    return lib.description if lib else "AntV visualization library"


def list_libraries() -> List[LibraryDescriptor]:
    return list(_LIBRARIES.values())
