"""Fixed-code generation from a parsed review."""

import logging
import re
from pathlib import Path

from src.agents.transport import ModelTransport
from src.models.conversation import Conversation
from src.models.errors import TransportError
from src.models.review import Review
from src.prompts.fix_generation_prompt import get_fix_generation_prompt

logger = logging.getLogger(__name__)

# Opening or closing fence, with an optional language tag (```js, ```c++, ```)
_CODE_FENCE = re.compile(r"```[\w+#.\-]*[ \t]*\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences from model output.

    Args:
        text: Raw model reply, possibly wrapped in ```lang ... ```

    Returns:
        The code with every fence marker removed and surrounding whitespace
        trimmed
    """
    return _CODE_FENCE.sub("", text).strip()


class FixGenerator:
    """Asks the model for a corrected version of a reviewed file.

    The result is not validated for syntax; applying it is left to the
    caller after user confirmation.
    """

    def __init__(self, transport: ModelTransport) -> None:
        self.transport = transport

    async def generate(
        self, file_path: str, original_code: str, review: Review
    ) -> str:
        """
        Generate the fixed file contents.

        Args:
            file_path: Path of the reviewed file
            original_code: Text the review was based on
            review: Parsed review to apply

        Returns:
            Replacement text for the whole file

        Raises:
            TransportError: If the request fails or the model returns no code
        """
        path = Path(file_path)
        prompt = get_fix_generation_prompt(
            path.name, path.suffix, original_code, review
        )

        conversation = Conversation()
        conversation.add_user(prompt)
        reply = await self.transport.send(conversation)

        fixed_code = strip_code_fences(reply.text)
        if not fixed_code:
            raise TransportError(f"Model returned no code for {path.name}")

        if fixed_code == original_code.strip():
            logger.warning(
                f"Generated code for {path.name} is identical to the original"
            )

        logger.info(f"Generated fixed code for {path.name} ({len(fixed_code)} chars)")
        return fixed_code
