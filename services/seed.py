"""
Sample Data

Populates an empty catalogue with a few categories and recipes.
Categories are created first and collected into an ordered mapping that the
recipes then refer to by name.
"""

import logging
import uuid

from PIL import Image

from models import db, Category, Recipe
from .image_sync import ImagePlan

logger = logging.getLogger(__name__)


SAMPLE_CATEGORIES = [
    ('South Indian', (214, 160, 60)),
    ('North Indian', (180, 70, 40)),
    ('Japanese', (90, 140, 90)),
    ('Favourites', (200, 120, 150)),
]

SAMPLE_RECIPES = [
    {
        'name': 'Sukhe Chole',
        'description': (
            'A South Indian-style dry chana, sweet and salty and not overwhelmed by spice. '
            'The key is caramelizing the onions first and making sure the chole is well-drained.'
        ),
        'ingredients': [
            'two cups dry chana, cooked',
            '4 small or 2.5 medium onions, thinly sliced',
            '1 inch of ginger and 4 cloves garlic, minced',
            '2 fresh green chilis, slit',
            'dash of hing',
            '1 tsp black pepper, ground',
            'salt to taste',
            '2 limes',
            '2 handfuls fresh cilantro',
            'handful of fresh mint',
        ],
        'steps': [
            'Saute the thinly sliced onions in oil and butter until starting to brown',
            'Add the ginger-garlic paste, the hing, and chilis',
            'Cook until the raw aroma disappears and onions are well-browned',
            'Add salt and ground black pepper',
            'Add one handful of fresh cilantro, chopped',
            'Add the cooked chole, well-drained',
            'Add juice from two limes and cook, covered, for two minutes',
            'Garnish with the remaining cilantro and the mint, chopped',
        ],
        'source_link': 'https://www.vegrecipesofindia.com/sukhe-chole-recipe/',
        'source_text': "Dry Chana - Dassana's Veg Recipes",
        'categories': ['South Indian', 'Favourites'],
        'colour': (230, 190, 110),
    },
    {
        'name': 'Gujarati Dry Mung Beans',
        'description': (
            'Sweet and sour mung beans (hari daal) with cinnamon, brown sugar, '
            'lemon juice or tamarind, and curry leaves.'
        ),
        'ingredients': [
            '1.5 cups mung beans, cooked',
            '2 tbs vegetable or coconut oil',
            '1 tsp mustard seeds',
            'dash of hing',
            '2 stems curry leaves',
            '1 tbs garlic, minced',
            '2 hot chillies, minced',
            '3 roma tomatoes, chopped',
            '1/2 tsp turmeric',
            '1 tsp cinnamon powder',
            'tamarind water or lemon juice to taste',
            'salt',
            'sugar to taste',
            'handful fresh cilantro',
        ],
        'steps': [
            'Saute mustard seeds, hing, curry leaves, garlic, and chillies in oil without burning',
            'Add the tomatoes, turmeric and cooked mung beans; cook 2 minutes, stirring gently',
            'Add salt, sugar, lemon juice or tamarind water, and cinnamon; cook 2 more minutes',
            'Garnish with fresh cilantro, chopped',
        ],
        'source_link': 'https://www.sanjanafeasts.co.uk/2010/05/gujarati-dry-mung-bean-curry/',
        'source_text': 'Gujarati Dry Mung Bean Curry - Sanjana Feasts',
        'categories': ['North Indian', 'Favourites'],
        'colour': (120, 160, 60),
    },
    {
        'name': 'Sushi Rice',
        'description': 'A quick single serving of sushi rice for inari or onigiri.',
        'ingredients': [
            '1.5 cups cooked rice, ideally Japanese short-grain',
            '1/2 tsp salt',
            '2 tsp sugar',
            '6 tsp rice vinegar',
            '(optional) sesame seeds',
        ],
        'steps': [
            'Heat the vinegar, sugar, and salt in a small saucepan until boiling',
            'Drizzle over the cooked rice and gently fold until evenly mixed',
            'Sprinkle in sesame seeds if desired and use immediately',
        ],
        'source_link': 'https://www.gimmesomeoven.com/sushi-rice/',
        'source_text': 'Sushi Rice Recipe - Gimme Some Oven',
        'categories': ['Japanese', 'Favourites'],
        'colour': (240, 240, 230),
    },
]


def _placeholder_image(local_store, colour, size=(400, 300)):
    """Write a solid-colour PNG into the store and return its filename."""
    filename = uuid.uuid4().hex + '.png'
    Image.new('RGB', size, colour).save(local_store.path_for(filename), 'PNG')
    return filename


def seed_catalogue(images):
    """
    Create the sample categories, then the sample recipes.

    Entries whose name already exists are left alone.

    Returns:
        tuple of (categories created, recipes created)
    """
    categories = {}
    new_entries = []

    for name, colour in SAMPLE_CATEGORIES:
        category = Category.query.filter_by(name=name).first()
        if category is None:
            category = Category(name=name, image=_placeholder_image(images.local_store, colour))
            db.session.add(category)
            new_entries.append(category)
        categories[name] = category

    recipes_created = 0
    for details in SAMPLE_RECIPES:
        if Recipe.query.filter_by(name=details['name']).first() is not None:
            continue
        fields = {k: v for k, v in details.items() if k not in ('categories', 'colour')}
        recipe = Recipe(
            image=_placeholder_image(images.local_store, details['colour']),
            categories=[categories[name] for name in details['categories']],
            **fields
        )
        db.session.add(recipe)
        new_entries.append(recipe)
        recipes_created += 1

    db.session.commit()

    # Mirror only after the rows exist
    for entry in new_entries:
        plan = ImagePlan(local_path=entry.image, changed=True)
        images.after_commit(type(entry), entry.id, plan)

    categories_created = len(new_entries) - recipes_created
    logger.info("Seeded %d categories and %d recipes", categories_created, recipes_created)
    return categories_created, recipes_created
