"""Adaptive drill engine for Japanese kana, kanji and vocabulary practice."""
