"""NPC Brain - drives a scripted character and hands it to live chat at the podium."""

__version__ = "0.1.0"
