"""User-facing texts of the conversation, in the bot's language (Russian)."""

ASK_FOR_PHOTO = "Отправьте мне фотографию, и я сделаю для вас картинку для поста или сторис ⬇️"
NOT_AN_IMAGE = "Это не изображение. Пожалуйста, пришлите изображение."
DOWNLOADING = "Загружаю ваше изображение..."
ASK_FOR_FORMAT = (
    "Выберите формат изображения. Вертикальная картинка отлично подойдет для сторис, "
    "а квадратная — для поста в соцсетях."
)
FORMAT_LABELS = {
    "stories": "Сторис 9х16",
    "square": "Пост 1х1",
}
FORMAT_CHOSEN = "Вы выбрали формат: {label}"
PROCESSING = "Создаем изображение, буквально пару секунд..."
DONE = "Готово! 🥳 Нажмите /start, чтобы отправить другое фото или изменить формат картинки."
PROCESSING_FAILED = "Извините, произошла ошибка при обработке вашего изображения. Попробуйте снова."
START_FIRST = "Сначала необходимо вызвать команду /start для начала работы"
HELP = (
    "Как использовать этого бота:\n"
    "1. Нажмите /start и отправьте фото\n"
    "2. Выберите размер изображения из предложенных вариантов\n"
    "3. Получите готовую картинку для поста или сторис\n\n"
    "Поддерживаемые форматы: JPG, PNG, WEBP, HEIC и другие"
)
