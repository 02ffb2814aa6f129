from typing import NewType

EventId = NewType('EventId', str)
QuestId = NewType('QuestId', str)
ItemId = NewType('ItemId', str)
FeatureId = NewType('FeatureId', str)
