"""
Message mappers that turn the results of actions into hypermedia representations.

``representor``
    :py:class:`~hyperaction.message.representor.Representor`, the declaration of how the models
    of a resource are represented
``hal``
    :py:class:`~hyperaction.message.hal.HALMessageMapper`, which produces HAL JSON
"""
from .representor import Representor, LinkedModel
from .hal import HALMessageMapper, HAL_CONTENT_TYPE
