import firebase_admin
import google.cloud.firestore

from .firebase import FirebaseApp


def get_app() -> firebase_admin.App:
    return FirebaseApp().app


def get_firestore_db() -> google.cloud.firestore.Client:
    return FirebaseApp().get_firestore_db()
