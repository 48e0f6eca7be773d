"""
Wire format helpers for the Secrets Manager JSON protocol.
"""
