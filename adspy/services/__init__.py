"""
Services layer for adspy.

Provides clean separation between external adapters (ApifyService,
GeminiService, ad retrievers) and the competitive analysis engine.
"""
