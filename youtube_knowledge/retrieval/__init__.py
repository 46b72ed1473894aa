"""Ranking stored chunks against a question and answering from them."""
