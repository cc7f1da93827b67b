"""Conversation core for merging sticker sets and custom emoji into new sets."""
