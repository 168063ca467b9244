import logging

from openai import AsyncOpenAI

from swift.config import Settings

logger = logging.getLogger("swift")


class ModelManager:
    """Provider handles for one application instance.

    Built once at startup (or handed in by tests) and shared by every request.
    The handles carry no per-request state.
    """

    def __init__(self, stt, llm, tts, closers=()):
        self.stt = stt
        self.llm = llm
        self.tts = tts
        self._closers = list(closers)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelManager":
        from swift.models.llm import load_llm
        from swift.models.stt import load_stt
        from swift.models.tts import load_tts

        kwargs = {}
        if settings.provider_timeout_s is not None:
            kwargs["timeout"] = settings.provider_timeout_s
        openai_client = AsyncOpenAI(api_key=settings.openai_api_key, **kwargs)

        stt = load_stt(settings, openai_client)
        llm = load_llm(settings, openai_client)
        tts = load_tts(settings)

        closers = [openai_client.close, tts.client.aclose]
        if llm.provider != "openai":
            closers.append(llm.client.close)
        return cls(stt, llm, tts, closers)

    async def aclose(self):
        for close in self._closers:
            try:
                await close()
            except Exception as e:
                logger.debug("Provider client close failed: %s", e)
        self._closers.clear()
        logger.info("Provider clients closed")
