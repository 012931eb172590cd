# statagen/agents/coder.py
"""
The Coder Agent

Sends a code-generation request and wraps the answer as a CodeSection.

The returned script is opaque: it is not parsed, cleaned up, validated
or executed. Whatever text the model returns becomes the section body.
"""

from typing import Optional

from ..errors import CodeGenerationFailure
from ..progress import log_event, update_display
from ..prompts import CodeGenerationRequest, section_caption
from ..state import CodeSection


async def generate_code(
    client,
    request: CodeGenerationRequest,
    thinking_level: Optional[str] = None,
) -> CodeSection:
    """
    Generate Stata code for one catalog method.

    Args:
        client: GeminiLLMClient (or anything with an async acall_text)
        request: Request built by prompts.build_code_request
        thinking_level: Optional chain-of-thought depth

    Returns:
        CodeSection titled with the method name

    Raises:
        CodeGenerationFailure: Transport error or empty response
    """
    method = request.method
    update_display("Coder", f"Generating {method.name}...")
    log_event("INFO", "Coder", f"Generating code for {method.name} ({method.hint})")

    try:
        code = await client.acall_text(
            system_prompt=request.system_prompt,
            user_text=request.prompt,
            thinking_level=thinking_level,
        )
    except Exception as e:
        raise CodeGenerationFailure(f"Code generation for {method.name} failed: {e}") from e

    if not code or not code.strip():
        raise CodeGenerationFailure(f"Code generation for {method.name} returned an empty response")

    log_event("INFO", "Coder", f"Generated {len(code.splitlines())} lines for {method.name}")

    return CodeSection(
        title=method.name,
        code=code,
        explanation=section_caption(method),
    )
