"""
LLM subsystem.

Components:
- client.py: backend clients (anthropic / google-genai / openai-for-perplexity) and ProviderProfile
- catalog.py: which backends are configured + default model parameters
- resolver.py: fallback policy that picks one ProviderProfile per request
- invoker.py: timed, muted completion call
"""
