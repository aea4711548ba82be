"""Tone mapping, blur, color ramps and baking."""
