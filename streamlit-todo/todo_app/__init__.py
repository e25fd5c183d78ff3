"""Streamlit to-do list over a hosted Supabase table."""
