"""docgraph retrieval and chat — merge engine, prompts, LLM adapters, ChatService."""
