"""Item Knowledge Base Core"""
__version__ = "0.1.0"
