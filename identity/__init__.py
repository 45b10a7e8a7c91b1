"""Identity tokens issued by the university auth provider"""
