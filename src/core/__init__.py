"""Core domain package for awaymail.

Core contains qualification, identity resolution, and confirmation logic
without any server, storage, or mail-transport code, keeping the business
logic portable.
"""
