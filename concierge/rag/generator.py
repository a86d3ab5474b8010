"""Google Gemini chat generator"""

from typing import List, Optional
import google.generativeai as genai
import asyncio
import logging
from concierge.rag.config import rag_config, RAGConfig
from concierge.rag.prompt_templates import ChatTurn
from concierge.exceptions import GenerationError

logger = logging.getLogger(__name__)


class GeminiGenerator:
    """Hosted chat model: seeded session with a system instruction"""
    
    def __init__(self, config: RAGConfig = rag_config):
        self.api_key = config.google_api_key
        if self.api_key:
            genai.configure(api_key=self.api_key)
        self.model_name = config.gemini_model
        self.max_tokens = config.gemini_max_tokens
        self.temperature = config.gemini_temperature
    
    def _build_model(self, system_instruction: str) -> "genai.GenerativeModel":
        generation_config = genai.GenerationConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
        )
        return genai.GenerativeModel(
            model_name=self.model_name,
            generation_config=generation_config,
            system_instruction=system_instruction
        )
    
    def start_chat(self, system_instruction: str, history: List[ChatTurn]) -> "genai.ChatSession":
        """Start a chat session seeded with sanitized history"""
        model = self._build_model(system_instruction)
        return model.start_chat(history=[turn.to_gemini() for turn in history])
    
    def generate(
        self,
        system_instruction: str,
        history: List[ChatTurn],
        message: str
    ) -> str:
        """
        Send ``message`` as the newest turn and return the reply text
        
        Args:
            system_instruction: Grounding instruction for the session
            history: Sanitized prior turns, starting with a user turn
            message: The new user message
            
        Returns:
            Model reply text
            
        Raises:
            GenerationError: Missing key, provider failure or empty reply
        """
        if not self.api_key:
            raise GenerationError("Missing Gemini API key")
        
        logger.info(f"Starting chat session ({len(history)} prior turn(s))")
        try:
            chat = self.start_chat(system_instruction, history)
            response = chat.send_message(message)
            # .text raises ValueError when the candidate was blocked
            content = response.text
        except Exception as e:
            logger.error(f"Gemini generation error: {e}")
            raise GenerationError(f"Chat model error: {e}") from e
        
        if not content or not content.strip():
            raise GenerationError("Chat model returned an empty reply")
        
        logger.info("Response received.")
        return content
    
    async def generate_async(
        self,
        system_instruction: str,
        history: List[ChatTurn],
        message: str
    ) -> str:
        """Generate without blocking the event loop"""
        return await asyncio.to_thread(self.generate, system_instruction, history, message)


_generator: Optional[GeminiGenerator] = None


def get_generator() -> GeminiGenerator:
    """Get the process-wide generator, creating it on first use"""
    global _generator
    if _generator is None:
        _generator = GeminiGenerator()
    return _generator
