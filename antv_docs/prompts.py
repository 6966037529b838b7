"""
Extraction prompt assembly for extract_antv_topic.

The server does no NLP of its own: it writes instructions that the
calling model follows to pick a library, extract topics, classify the
intent and decompose complex tasks. Everything here is a pure function
of (query, library context, limits) -> str.
"""

from typing import Iterable, Optional

from .libraries import get_library_config, get_library_keywords, list_libraries
from .models import (
    COMPLEX_FEATURE_THRESHOLD,
    COMPLEX_TOPIC_THRESHOLD,
    COMPLEX_VERB_THRESHOLD,
    QUERY_TOOL_NAME,
)


def generate_extraction_prompt(
    query: str,
    library: Optional[str],
    max_topics: int,
    installed: Iterable[str] = (),
    recommended: Optional[str] = None
) -> str:
    """
    Build the full extraction prompt.

    Args:
        query: The user's question
        library: Library slug chosen by the caller, or None to auto-detect
        max_topics: Upper bound on extracted topic phrases
        installed: AntV libraries detected in the project (hint only)
        recommended: Library suggested by the local heuristics (hint only)

    Returns:
        Markdown prompt text
    """
    sections = [
        _header(query, library, max_topics),
        _library_context(library) if library else _library_detection(installed, recommended),
        _extraction_rules(library, max_topics),
        _output_format(),
        _next_step(),
    ]
    return "\n\n".join(sections) + "\n"


def _header(query: str, library: Optional[str], max_topics: int) -> str:
    if library:
        lib = get_library_config(library)
        library_line = f"**Specified Library**: {lib.display_name} ({lib.id})"
    else:
        library_line = "**Library**: Auto-detect"
    return (
        "# AntV Query Analysis & Topic Extraction\n\n"
        "## User Query\n"
        f"**Query**: {query}\n"
        f"**Max Topics**: {max_topics}\n"
        f"{library_line}\n\n"
        "## Task Instructions"
    )


def _library_context(library: str) -> str:
    lib = get_library_config(library)
    glossary = get_library_keywords(library)
    lines = [
        "### Phase 1: Library Context (Library Specified)",
        f"Using specified library: **{lib.display_name} ({lib.id})** - {lib.description}",
    ]
    if glossary:
        lines.append("")
        lines.append(f"**{lib.display_name} terminology:**")
        lines.append(glossary)
    return "\n".join(lines)


def _library_detection(installed: Iterable[str], recommended: Optional[str]) -> str:
    mappings = "\n".join(
        f"   - **{lib.display_name} ({lib.id})**: {lib.description}" for lib in list_libraries()
    )
    installed = sorted(installed)
    lines = [
        "### Phase 1: Library Detection",
        "**Determine the most suitable AntV library:**",
        "",
        "Available Libraries:",
        mappings,
        "",
        "**Selection Priority:**",
        "1. Scan the project dependencies (package.json, node_modules/@antv) for installed AntV libraries",
        "2. Match the query intent against each library's purpose",
        "3. A library found in the project dependencies wins over a pure intent match",
        "4. Consider common use cases for the query type",
    ]
    if installed:
        lines.append("")
        lines.append(f"**Detected in project**: {', '.join(f'@antv/{lib}' for lib in installed)}")
    if recommended:
        lines.append(f"**Suggested library**: {recommended} (confirm or override based on the query)")
    return "\n".join(lines)


def _extraction_rules(library: Optional[str], max_topics: int) -> str:
    glossary = get_library_keywords(library) if library else ""
    terminology = (
        "Use official AntV English terminology from the terminology list above"
        if glossary
        else "Use official AntV English terminology of the determined target library"
    )
    return f"""### Phase 2: Topic Extraction & Analysis

**Extract up to {max_topics} key technical topics covering ALL aspects mentioned:**
- Extract only from user query content, no additional concepts
- {terminology}
- Format as meaningful phrases (1-4 words), output in English only
- **Cover these technical aspects in priority order**:
  1. Chart types and core components
  2. Visual styling (colors, thickness, backgrounds, opacity)
  3. Interactions (hover, click, tooltip, zoom)
  4. Configurations (data processing, scales, axis, animations)

**Determine User Intent:**
Based on the tone and content of the query, select the most matching intent:
- **learn**: Understanding concepts or APIs, no code change requested
  - Key patterns: "what is", "explain", "introduce", "difference between", "什么是/介绍/区别"
- **implement**: Creating new charts, components or functionality, code examples, configuration setup
  - Key patterns: "create", "build", "implement", "add", "write", "创建/实现/添加/构建/写一个"
- **solve**: Fixing problems, troubleshooting errors, changing existing styling or behaviour
  - Key patterns: "how to configure/set/modify/change", "not working", "error", "怎么/如何/为什么/不显示"
- If uncertain between implement and solve, default to solve.

**Assess Task Complexity:**
Treat the query as complex if any of these hold:
- More than {COMPLEX_TOPIC_THRESHOLD} extracted topics
- More than {COMPLEX_FEATURE_THRESHOLD} distinct components or features involved
- More than {COMPLEX_VERB_THRESHOLD} separate actions requested (multi-step phrasing such as "first ... then ...")

If complex, decompose into 2-4 subtasks, each subtask should:
- Focus on a specific technical point or functionality
- Be able to independently obtain answers through documentation queries
- Be arranged in logical order (basic -> advanced)
- Have a clear, concise topic following the format requirements above"""


def _output_format() -> str:
    return """### Phase 3: Output Format

**For Simple Tasks:**
```json
{
  "library": "detected_or_specified_library",
  "topic": "topic1, topic2, topic3",
  "intent": "learn|implement|solve",
  "isComplexTask": false
}
```

**For Complex Tasks:**
```json
{
  "library": "detected_or_specified_library",
  "topic": "overall_topic_summary",
  "intent": "overall_intent",
  "isComplexTask": true,
  "subTasks": [
    {
      "query": "specific_subtask_question_1",
      "topic": "subtask_topic_1"
    },
    {
      "query": "specific_subtask_question_2",
      "topic": "subtask_topic_2"
    }
  ]
}
```

**Analyze the query and provide the structured output above.**"""


def _next_step() -> str:
    return (
        "## Important Notice\n"
        f"**MANDATORY NEXT STEP**: After completing this task, immediately call the "
        f"`{QUERY_TOOL_NAME}` tool with the extracted parameters."
    )
