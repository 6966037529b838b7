"""
Response formatting for query_antv_document.

Turns fetch outcomes into the Markdown answer shown to the calling
model: a single-topic answer, a per-subtask answer with an aggregate
summary, intent-specific guidance and a follow-up notice.
"""

from typing import List, Optional

from .models import (
    CHARACTER_LIMIT,
    EXTRACT_TOOL_NAME,
    QUERY_TOOL_NAME,
    FetchOutcome,
    LibraryDescriptor,
    SubTaskResult,
)


def format_simple_response(
    lib: LibraryDescriptor,
    query: str,
    topic: str,
    intent: str,
    outcome: FetchOutcome
) -> str:
    """
    Format the answer to a single-topic query.

    Args:
        lib: Library the question is about
        query: User question
        topic: Search topic sent upstream
        intent: learn / implement / solve (anything else gets generic tips)
        outcome: Result of the documentation fetch

    Returns:
        Markdown answer
    """
    output = [
        f"# {lib.display_name} Q&A\n\n",
        f"**User Question**: {query}\n",
        f"**Search Topic**: {topic}\n",
        "\n---\n\n",
    ]

    if outcome.has_documentation:
        output.append(f"## 📚 Related Documentation\n\n{outcome.documentation}\n\n")
        output.append(format_intent_guidance(intent, lib))
    elif outcome.error:
        output.append("## ⚠️ Documentation Retrieval Failed\n\n")
        output.append(f"Error: {outcome.error}\n\n")
        output.append("Could not retrieve relevant documentation content. Recommendations:\n")
        output.append(_remediation(lib))
    else:
        output.append("## 🔍 No Documentation Found\n\n")
        output.append(f"No {lib.display_name} documentation matched this topic. Recommendations:\n")
        output.append(_remediation(lib))

    output.append(format_follow_up())
    return truncate_if_needed("".join(output))


def format_complex_response(
    lib: LibraryDescriptor,
    query: str,
    intent: str,
    results: List[SubTaskResult]
) -> str:
    """
    Format the answer to a decomposed query, one section per subtask.

    Sections follow the order of ``results``, which is the order the
    caller supplied the subtasks in.
    """
    output = [
        f"# {lib.display_name} Complex Task Response\n\n",
        f"**User Question**: {query}\n",
        f"**Task Type**: Complex task (decomposed into {len(results)} subtasks)\n",
        "\n---\n\n",
    ]

    for index, result in enumerate(results, start=1):
        output.append(f"## 📋 Subtask {index}\n\n")
        output.append(f"**Subtask Query**: {result.task.query}\n")
        output.append(f"**Subtask Topic**: {result.task.topic}\n\n")
        if result.outcome.has_documentation:
            output.append(f"{result.outcome.documentation}\n\n")
        else:
            output.append("⚠️ Could not retrieve relevant documentation content\n\n")
            if result.outcome.error:
                output.append(f"Error: {result.outcome.error}\n\n")
        output.append("---\n\n")

    output.append("## 🎯 Task Integration Recommendations\n\n")
    output.append(format_complex_summary(results))
    output.append(format_intent_guidance(intent, lib))
    output.append(format_follow_up())
    return truncate_if_needed("".join(output))


def summary_tier(success_count: int, total_count: int) -> str:
    """Classify a batch as "complete", "partial" or "insufficient"."""
    if total_count and success_count == total_count:
        return "complete"
    if success_count > total_count / 2:
        return "partial"
    return "insufficient"


def format_complex_summary(results: List[SubTaskResult]) -> str:
    success_count = sum(1 for r in results if r.outcome.has_documentation)
    total_count = len(results)
    tier = summary_tier(success_count, total_count)

    summary = f"Based on {success_count}/{total_count} subtask documentation query results:\n\n"
    if tier == "complete":
        summary += "✅ **Complete Answer**: All subtasks found relevant documentation\n\n"
    elif tier == "partial":
        summary += (
            "⚠️ **Partial Answer**: Most subtasks found relevant documentation. Recommendations:\n\n"
            "1. Implement features with documentation support first\n"
            "2. For parts lacking documentation, consult official resources or example code\n"
            "3. Gradually improve solutions through practice\n\n"
        )
    else:
        summary += (
            "❌ **Insufficient Documentation**: Most subtasks lack documentation support. Recommendations:\n\n"
            "1. Refine query keywords\n"
            "2. Consult official documentation and examples\n"
            "3. Look for community resources and best practices\n\n"
        )
    return summary


def format_intent_guidance(intent: str, lib: LibraryDescriptor) -> str:
    if intent == "learn":
        return _learn_guidance()
    if intent == "implement":
        return _implement_guidance(lib)
    if intent == "solve":
        return _solve_guidance(lib)
    return _default_guidance(lib)


def format_follow_up() -> str:
    return f"""
---

## 🔄 Important Notice

**For subsequent AntV queries:**
- **MANDATORY**: Always use `{QUERY_TOOL_NAME}` tool for ANY AntV-related query (including simple modifications)
- **For new questions**: Use `{EXTRACT_TOOL_NAME}` first, then `{QUERY_TOOL_NAME}`
- **Never** provide AntV solutions without querying official documentation through tools

"""


def format_processing_error(message: Optional[str]) -> str:
    return f"❌ Processing failed: {message or 'Unknown error'}"


def truncate_if_needed(content: str) -> str:
    """Truncate content if it exceeds character limit."""
    if len(content) <= CHARACTER_LIMIT:
        return content

    truncated = content[:CHARACTER_LIMIT]
    return (
        f"{truncated}\n\n"
        f"[TRUNCATED - Response exceeds {CHARACTER_LIMIT:,} characters. "
        f"Original length: {len(content):,}. "
        f"Try a lower token budget or a narrower topic.]"
    )


# ============================================================================
# Private Formatting Functions
# ============================================================================

def _remediation(lib: LibraryDescriptor) -> str:
    return (
        "1. Check if search topics are accurate\n"
        "2. Try using more specific technical terms\n"
        f"3. Refer to {lib.display_name} official documentation\n"
    )


def _learn_guidance() -> str:
    return """## 💡 Learning Recommendations

- First understand the core concepts and basic usage in the documentation
- Run example code to observe effects and parameter functions
- Start with simple examples, gradually try complex features
- Consult official documentation when encountering problems

"""


def _implement_guidance(lib: LibraryDescriptor) -> str:
    code_style = lib.code_style or f"follow the official {lib.display_name} examples"
    return f"""## 🛠️ Implementation Recommendations

- Follow the code style and best practices of the library: {code_style}
- Refer to example code in the documentation
- Pay attention to required and optional parameter configurations
- Implement basic features first, then add advanced features
- Don't over-engineer, focus on user requirements
- Merge multiple examples into one final minimal solution with only core functionality

"""


def _solve_guidance(lib: LibraryDescriptor) -> str:
    return f"""## 🔧 Troubleshooting

- Check error messages and parameter configurations
- Compare your code with documentation examples for differences
- Confirm {lib.display_name} version and dependency compatibility
- If problems persist, check official GitHub Issues

"""


def _default_guidance(lib: LibraryDescriptor) -> str:
    return f"""## 📖 Usage Recommendations

- Carefully read the above documentation content
- Practice with reference to code examples
- Adjust relevant parameters according to requirements
- Consult {lib.display_name} official documentation for more information

"""
