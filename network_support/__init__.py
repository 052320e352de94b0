"""On-demand diagnostic log collection service"""
