from types import SimpleNamespace


def completion(content):
    message = SimpleNamespace(role='assistant', content=content)
    return SimpleNamespace(id='mock-1', model='mock-model', choices=[SimpleNamespace(index=0, message=message)])


class FakeOpenAI:
    """Replaces openai.OpenAI; every instance replays the class-level reply or raises the class-level error."""

    reply = None
    error = None
    calls = []
    init_kwargs = {}

    def __init__(self, **kwargs):
        FakeOpenAI.init_kwargs = kwargs
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))
        self.models = SimpleNamespace(retrieve=self._retrieve)

    def _create(self, **kwargs):
        FakeOpenAI.calls.append(kwargs)
        if FakeOpenAI.error is not None:
            raise FakeOpenAI.error
        return completion(FakeOpenAI.reply)

    def _retrieve(self, model):
        if FakeOpenAI.error is not None:
            raise FakeOpenAI.error
        return SimpleNamespace(id=model)
