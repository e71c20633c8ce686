"""Engine services. Every operation takes an explicit database session."""
