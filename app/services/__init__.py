"""
Services package - rating resolution, provider clients, refresh and re-rating
"""
