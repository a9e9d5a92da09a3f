from enum import IntEnum, StrEnum


# Enums
class StatType(StrEnum):
    READ_COUNT = "read_count"
    RECOMMEND_VOTES = "recommend_votes"
    MONTHLY_TICKETS = "monthly_tickets"
    COLLECTION_COUNT = "collection_count"


class RankType(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    PEAK = "peak"


class PeakSegment(StrEnum):
    ALL = "all"
    MALE = "male"
    FEMALE = "female"


class Channel(IntEnum):
    FEMALE = 0
    MALE = 1


class BookStatus(IntEnum):
    COMPLETED = 0
    ONGOING = 1


PEAK_SEGMENT_CHANNELS: dict[PeakSegment, Channel | None] = {
    PeakSegment.ALL: None,
    PeakSegment.MALE: Channel.MALE,
    PeakSegment.FEMALE: Channel.FEMALE,
}
