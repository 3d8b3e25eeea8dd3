"""Competitive Analysis Service Package

1-vs-5 ad dominance engine:
- Classification: 11-dimension creative classification in bounded batches
- Aggregation: per-brand distributions and deduplicated lists
- Gap analysis: consensus gaps between the subject and five competitors
- Market synthesis: plurality snapshot of the competitor market
- Recommendations: narrative + ranked actions from a text-generation service
"""
