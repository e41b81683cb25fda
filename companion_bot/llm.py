"""
Text generation for the !chat directive, backed by Gemini through google-genai
"""
import re
from typing import TYPE_CHECKING, Any, Optional

from google import genai
from google.genai import types

from .errors import TextGenerationError
from .logging_config import get_logger

if TYPE_CHECKING:
    from .config import BotConfig

logger = get_logger(__name__)

ACTION_TAG = re.compile(r"<action:(.*?)>")

PERSONA = """
You are {name}, a Hinglish-speaking Minecraft bot living INSIDE Minecraft.

BEHAVIOUR RULES:
- Speak short Hinglish (50% English, 50% Hindi)
- Be friendly + cute + thoda attitude
- Reply in **one sentence only**
- Never write more than one line
- Use emojis often

ACTION FORMAT:
- Use **only one action tag at the END**
- Always put the action tag in <action:...> format

NOT TO DO:
- Never say you are an AI model
- Never say the player's name
- Never show the action tag in chat

User message: {message}
"""


def strip_action_tags(text: str) -> str:
    """Remove embedded <action:...> markup from a reply"""
    return ACTION_TAG.sub("", text).strip()


def build_prompt(persona_name: str, message: str) -> str:
    return PERSONA.format(name=persona_name, message=message.strip())


class GeminiTextGenerator:
    """Replies in the bot's persona; a missing API key only fails the call, never construction"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        persona_name: str = "Aisha",
        temperature: float = 0.9,
        max_output_tokens: int = 256,
        client: Any = None,
    ):
        self.model = model
        self.persona_name = persona_name
        self.generation_config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        self._api_key = api_key
        self._client = client

    @classmethod
    def from_config(cls, config: "BotConfig") -> "GeminiTextGenerator":
        api_key = config.gemini_api_key.get_secret_value() if config.gemini_api_key else None
        if not api_key:
            logger.warning("Gemini API key not configured, !chat will report failures")
        return cls(
            api_key=api_key,
            model=config.gemini_model,
            persona_name=config.bot_username,
            temperature=config.agent_temperature,
            max_output_tokens=config.max_output_tokens,
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise TextGenerationError("Gemini API key is not configured")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        """Send a prompt and return the raw reply text

        Raises:
            TextGenerationError: not configured, request failed or reply was empty
        """
        client = self.client
        contents = [types.Content(role="user", parts=[types.Part(text=prompt)])]
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=self.generation_config,
            )
        except Exception as e:
            logger.error("AI error", model=self.model, error=str(e))
            raise TextGenerationError(str(e)) from e

        text = response.text
        if not text:
            raise TextGenerationError("Empty reply from model")
        return text

    async def reply(self, message: str) -> str:
        """Persona reply to a player message with action markup removed"""
        raw = await self.generate(build_prompt(self.persona_name, message))
        return strip_action_tags(raw)
