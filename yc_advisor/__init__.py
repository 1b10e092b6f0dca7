"""
YC Advisor: retrieval-augmented chat service for YC application advice.
"""
