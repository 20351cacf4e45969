"""Prompt for LLM-based code fix generation."""

from src.models.review import Review


def _bullet_lines(items: list[str]) -> str:
    return "\n".join(items) if items else "(none)"


def get_fix_generation_prompt(
    file_name: str,
    file_extension: str,
    original_code: str,
    review: Review,
) -> str:
    """
    Generate a prompt for the LLM to rewrite a file with the review applied.

    Args:
        file_name: Base name of the file
        file_extension: Extension including the dot, may be empty
        original_code: Current file contents
        review: Parsed review whose findings should be fixed

    Returns:
        Formatted prompt string for LLM
    """
    language = file_extension.lstrip(".")

    prompt = f"""Based on the code review, generate the corrected version of this code.

Original File: {file_name}
```{language}
{original_code}
```

Review Summary:
{review.summary}

Issues to Fix:
{_bullet_lines(review.issues)}

Suggestions to Apply:
{_bullet_lines(review.suggestions)}

Instructions:
1. Generate the COMPLETE corrected file, not a fragment
2. Do NOT include explanations, comments about the changes, or markdown
3. Do NOT wrap the code in ``` fences
4. Preserve the original indentation and formatting style
5. Only change what's necessary to address the review

Output the corrected code exactly as it should appear in the file:"""

    return prompt
