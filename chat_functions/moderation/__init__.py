from .service import blur_image, blur_offensive_images, message_id_from_path

__all__ = ["blur_image", "blur_offensive_images", "message_id_from_path"]
