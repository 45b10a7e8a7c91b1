"""Voting core: status, eligibility, vote admission, results"""
