"""フックエントリーポイント"""
