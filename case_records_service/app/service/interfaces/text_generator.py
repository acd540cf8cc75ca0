from abc import ABC, abstractmethod


class AbstractTextGenerator(ABC):
    @abstractmethod
    async def generate(self, prompt: str, context: str) -> str:
        """
        Produces a reply to `prompt`. `context` is the rendered conversation
        window built by the context windower; its size is already bounded.
        """
        pass
