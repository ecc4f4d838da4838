from __future__ import annotations

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .cache import invalidate_featured_cache
from .models import Category, Listing


@receiver(post_save, sender=Listing, dispatch_uid="listing_featured_invalidate_on_save")
@receiver(post_delete, sender=Listing, dispatch_uid="listing_featured_invalidate_on_delete")
def _invalidate_featured_on_listing_change(sender, instance, **kwargs):
    invalidate_featured_cache()


@receiver(post_save, sender=Category, dispatch_uid="listing_featured_invalidate_on_category_save")
def _invalidate_featured_on_category_change(sender, instance, **kwargs):
    invalidate_featured_cache()
