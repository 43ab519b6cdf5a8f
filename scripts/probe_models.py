"""
Model probe

Sends a one-word prompt to each candidate model for the configured provider
and reports which ones answer, with latency. Useful before changing
OPENAI_MODEL / OLLAMA_MODEL.

Usage:
    python scripts/probe_models.py
    python scripts/probe_models.py gpt-4o gpt-4.1-mini
"""

import asyncio
import sys
import time
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from langchain_core.messages import HumanMessage

from support_chat.config.settings import settings
from support_chat.llm.client import create_llm, describe_provider
from support_chat.llm.response_utils import extract_text_from_response

OPENAI_CANDIDATES = [
    "gpt-4o-mini",
    "gpt-4o",
    "gpt-4.1-mini",
    "gpt-4.1-nano",
    "gpt-4.1",
    "gpt-3.5-turbo",
]

OLLAMA_CANDIDATES = [
    "llama3",
    "llama3.1",
    "llama3.2",
    "mistral",
    "qwen2.5",
]

PROMPT = 'Say "Hello" in one word.'


async def probe(model_name: str) -> dict:
    start = time.perf_counter()
    try:
        llm = create_llm(model=model_name, max_completion_tokens=10)
        response = await asyncio.wait_for(llm.ainvoke([HumanMessage(content=PROMPT)]), timeout=settings.llm_timeout_seconds)
        text = extract_text_from_response(response).strip()
    except Exception as e:
        return {"model": model_name, "success": False, "error": str(e).splitlines()[0][:100] if str(e) else type(e).__name__}

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    if not text:
        return {"model": model_name, "success": False, "error": "Empty response"}
    return {"model": model_name, "success": True, "response_time_ms": elapsed_ms}


async def run(models):
    results = []
    for model_name in models:
        print(f"Testing {model_name:<24}", end=" ", flush=True)
        result = await probe(model_name)
        if result["success"]:
            print(f"✅ {result['response_time_ms']}ms")
        else:
            print(f"❌ {result['error']}")
        results.append(result)
    return results


def main():
    models = sys.argv[1:]
    if not models:
        models = OLLAMA_CANDIDATES if settings.llm_provider.lower() == "ollama" else OPENAI_CANDIDATES

    print("="*60)
    print(f"Model probe - {describe_provider()}")
    print("="*60)

    results = asyncio.run(run(models))
    working = [r for r in results if r["success"]]

    print("="*60)
    print(f"Working models: {len(working)}/{len(results)}")
    for r in sorted(working, key=lambda r: r["response_time_ms"]):
        print(f"  {r['model']:<24} {r['response_time_ms']}ms")
    if working:
        print(f"\nFastest: {min(working, key=lambda r: r['response_time_ms'])['model']}")
    else:
        print("\n❌ No working models found. Check the API key and provider settings.")
        sys.exit(1)


if __name__ == "__main__":
    main()
