"""Prompt for the file review conversation."""

TOOL_GUIDE = """If you need to check related files, imports, or project structure, use the available tools:
- read_file(file_path): Read another file
- list_directory(directory_path): List directory contents
- find_file(pattern, directory): Find files by name pattern (* and ? wildcards)"""


def get_review_prompt(file_name: str, file_extension: str, content: str) -> str:
    """
    Build the opening prompt of a file review.

    The section headings requested here are the ones the response parser
    recognises, so keep both in sync.

    Args:
        file_name: Base name of the file (e.g., "app.js")
        file_extension: Extension including the dot (e.g., ".js"), may be empty
        content: Full source text of the file

    Returns:
        Prompt text for the first conversation turn
    """
    language = file_extension.lstrip(".")
    kind = f"{file_extension} file" if file_extension else "file"

    return f"""You are an expert code reviewer. Review the following {kind} and provide:

1. **Overall Assessment**: Brief summary of code quality (1-2 sentences)
2. **Issues Found**: List any bugs, security vulnerabilities, performance issues, or bad practices, one per line
3. **Suggestions**: Concrete improvements with examples, one per line
4. **Severity**: Rate each issue as Critical, High, Medium, or Low
5. **Can Auto-Fix**: Answer Yes or No - can the issues be fixed automatically?

File: {file_name}
```{language}
{content}
```

{TOOL_GUIDE}

Provide a structured review with actionable feedback."""
