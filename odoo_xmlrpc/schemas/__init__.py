"""
Pydantic models shared by the client layers: call envelopes and
results, search options and field metadata.
"""
