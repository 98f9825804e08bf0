"""
Language model adapters. Import GeminiFlash from llms.gemini_flash directly;
the core only depends on llms.base_llm.
"""
