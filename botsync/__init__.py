"""Schedule lifecycle sync between Firestore and the Firebase Realtime Database."""

__version__ = "0.1.0"
