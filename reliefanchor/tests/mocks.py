from typing import List, Optional, Tuple

from reliefanchor.features.chat.provider import ChatProviderError


class FakeChatProvider:
    """In-process ChatProvider that records calls."""

    def __init__(self, reply: str = "That sounds hard. I'm here with you.", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.calls: List[Tuple[str, str]] = []

    def send(self, message: str, system_instruction: str) -> str:
        self.calls.append((message, system_instruction))
        if self.fail:
            raise ChatProviderError("provider offline")
        return self.reply


class FakeMessage:
    def __init__(self, content: Optional[str]):
        self.content = content


class FakeChoice:
    def __init__(self, content: Optional[str]):
        self.message = FakeMessage(content)


class FakeCompletion:
    def __init__(self, content: Optional[str]):
        self.choices = [FakeChoice(content)]


class FakeCompletions:
    def __init__(self, content: Optional[str] = "Hello from Groq", error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, *args, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return FakeCompletion(self.content)


class FakeChat:
    def __init__(self, completions: FakeCompletions):
        self.completions = completions


class FakeGroq:
    def __init__(self, content: Optional[str] = "Hello from Groq", error: Optional[Exception] = None):
        self.chat = FakeChat(FakeCompletions(content, error))
