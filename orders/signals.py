"""Order side effects: paid orders take their artworks off the market."""

import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from artworks.models import Artwork

from .models import Order

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Order)
def remember_previous_status(sender, instance, **kwargs):
    previous = None
    if instance.pk:
        previous = sender.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    instance._previous_status = previous


@receiver(post_save, sender=Order)
def mark_artworks_sold(sender, instance, created, **kwargs):
    """Flag every artwork on a newly paid order as sold."""
    if instance.status != Order.Status.PAID:
        return
    if getattr(instance, '_previous_status', None) == Order.Status.PAID:
        return
    sold = Artwork.objects.filter(order_items__order=instance).update(availability=Artwork.Availability.SOLD)
    logger.info("Order %s paid; marked %s artwork(s) sold", instance.pk, sold)
