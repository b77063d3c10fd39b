# haven/main.py
"""Relay between device-side companions and the language model.

Serves POST /api/chat in its two shapes: a chat turn (`messages`, optional
`systemPrompt`) and a journal summary (`message` with
`conversationId="journal-summary"`).
"""
from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse

from haven.errors import InvalidRequest, ProviderError
from haven.gateway import SUMMARY_CONVERSATION_ID, OpenAIProvider, ResponseGateway
from haven.models import Turn
from haven.signals import classify

# Basic logging so startup clearly reports whether OpenAI is enabled (will not print keys)
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Haven Companion Relay", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_provider: Optional[OpenAIProvider] = None


def get_provider() -> OpenAIProvider:
    global _provider
    if _provider is None:
        _provider = OpenAIProvider()
    return _provider


# -------- Pydantic request models --------
class ChatIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: Optional[List[Turn]] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    message: Optional[str] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class EmotionIn(BaseModel):
    text: str


def _validate_turns(turns: Optional[List[Turn]]) -> List[Turn]:
    if not turns:
        raise InvalidRequest("Invalid messages format for chat request")
    for t in turns:
        if t.role not in ("user", "assistant"):
            raise InvalidRequest(f"Unsupported role: {t.role}")
    if turns[-1].role != "user":
        raise InvalidRequest("Last message must be from the user.")
    return turns


@app.exception_handler(InvalidRequest)
async def _invalid_request(request: Request, exc: InvalidRequest):
    return JSONResponse({"detail": str(exc)}, status_code=400)


@app.on_event("startup")
def _startup():
    if get_provider().configured:
        logger.info("OpenAI client configured: relay will answer with the LLM.")
    else:
        logger.info("OpenAI key not found: chat requests will be answered with 503.")


# expose a simple status endpoint so clients can show whether the LLM path is enabled
@app.get("/api/status")
def status(provider: OpenAIProvider = Depends(get_provider)):
    using_llm = provider.configured
    return {"using_llm": using_llm, "model": provider.model,
            "message": "LLM enabled" if using_llm else "LLM not configured"}


@app.post("/api/emotion")
def detect_emotion(payload: EmotionIn):
    signal = classify(payload.text)
    return {"mood": signal.mood, "isCrisis": signal.is_crisis}


@app.post("/api/chat")
async def chat(payload: ChatIn, provider: OpenAIProvider = Depends(get_provider)):
    if payload.conversation_id == SUMMARY_CONVERSATION_ID and payload.message:
        logger.info("Processing journal summary request")
        try:
            summary = await provider.summarize(payload.message)
        except ProviderError as e:
            logger.exception("Summary generation failed")
            raise HTTPException(status_code=e.status_code or 502, detail="Summary unavailable")
        return {"message": summary}

    turns = _validate_turns(payload.messages)
    signal = classify(turns[-1].content)
    if not provider.configured:
        raise HTTPException(status_code=503, detail="LLM unavailable; please check server/API key")

    # The device already intercepted crisis turns; here the model answers and resources are appended.
    gateway = ResponseGateway(provider, intercept_crisis=False)
    reply = await gateway.reply(turns, signal, system_prompt=payload.system_prompt)
    if reply.is_error:
        raise HTTPException(status_code=502, detail="LLM request failed")
    return {"content": reply.text, "mood": signal.mood, "isCrisis": signal.is_crisis}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("haven.main:app", host="127.0.0.1", port=8000, reload=True)
