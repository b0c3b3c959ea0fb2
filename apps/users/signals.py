import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import CustomUser

logger = logging.getLogger(__name__)


@receiver(post_save, sender=CustomUser)
def create_seller_profile_for_seller_users(sender, instance, created, **kwargs):
    """
    Attach a SellerProfile when a seller user is created.

    Users promoted to seller later get their profile on the next save.
    """
    if instance.role != 'seller':
        return

    from apps.sellers.models import SellerProfile

    profile, profile_created = SellerProfile.objects.get_or_create(
        user=instance,
        defaults={'full_name': instance.get_full_name()}
    )
    if profile_created:
        logger.info(f'SellerProfile created for seller: {instance.email}')
