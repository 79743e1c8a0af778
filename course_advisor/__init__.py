"""
Course Advisor

Conversational course recommendations: criteria extraction, deterministic
rule-based ranking, narrative replies and conversation persistence.
"""
